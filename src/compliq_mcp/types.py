"""
Data types for the COMPLiQ MCP Server.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Exceptions
# =============================================================================


class CompliqError(Exception):
    """Base error for COMPLiQ tool operations.

    Provides structured error information with error codes for programmatic handling.
    """

    code = "COMPLIQ_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(CompliqError):
    """Tool parameters are missing, malformed or violate the content/file rule."""

    code = "VALIDATION_ERROR"


class DecodeError(CompliqError):
    """A base64 payload could not be decoded."""

    code = "DECODE_ERROR"


class UnknownToolError(CompliqError):
    """No tool is registered under the requested name."""

    code = "UNKNOWN_TOOL"


# =============================================================================
# Tool Results
# =============================================================================


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Uniform text envelope returned for every tool call, success or failure."""

    text: str

    @classmethod
    def error(cls, message: str) -> ToolResult:
        return cls(text=f"Error: {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the MCP content payload."""
        return {"content": [{"type": "text", "text": self.text}]}


# =============================================================================
# Outbound Requests
# =============================================================================


@dataclass(frozen=True, slots=True)
class FilePart:
    """A binary attachment in a multipart body."""

    file_name: str
    content_type: str
    data: bytes


@dataclass(slots=True)
class MultipartPayload:
    """Form fields plus an optional file part, in insertion order."""

    fields: dict[str, str] = field(default_factory=dict)
    file: FilePart | None = None

    def add(self, name: str, value: str | None) -> None:
        """Add a text field, skipping None."""
        if value is not None:
            self.fields[name] = value


@dataclass(frozen=True, slots=True)
class UpstreamRequest:
    """A payload paired with the endpoint it is sent to."""

    endpoint: str
    payload: MultipartPayload
