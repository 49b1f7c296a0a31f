"""
Parameter models for the COMPLiQ tools.

Wire names are camelCase (``sessionId``); attributes are snake_case. The
annotated field types are shared with the FastMCP tool signatures in server.py.
"""

from __future__ import annotations

from typing import Annotated

import pydantic
from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from compliq_mcp.config import FILE_CONTENT_TYPES, MAX_CONTENT_LENGTH, MAX_ID_LENGTH, resolve_content_type

TIMESTAMP_PATTERN = r"^\d{2}-\d{2}-\d{4} \d{2}:\d{2}:\d{2}$"
DURATION_PATTERN = r"^\d{2,}:\d{2}:\d{2}$"


def _check_content_type(value: str) -> str:
    if resolve_content_type(value) is None:
        raise ValueError(f"unsupported content type {value!r}, expected one of {', '.join(FILE_CONTENT_TYPES)}")
    return value


# =============================================================================
# Field Types
# =============================================================================

SessionId = Annotated[str, Field(max_length=MAX_ID_LENGTH, description="Session identifier")]
CorrelationId = Annotated[str, Field(max_length=MAX_ID_LENGTH, description="Correlation ID")]
UserId = Annotated[str, Field(max_length=MAX_ID_LENGTH, description="User identifier")]
Timestamp = Annotated[str, Field(pattern=TIMESTAMP_PATTERN, description="Timestamp (MM-DD-YYYY HH:MM:SS)")]
ProcessingTime = Annotated[
    str, Field(pattern=DURATION_PATTERN, description="Time spent by the third-party system (HH:MM:SS)")
]
ResourceName = Annotated[str, Field(min_length=1, description="Name of the resource used")]
Content = Annotated[str, Field(max_length=MAX_CONTENT_LENGTH, description="Plain text content")]
FileBase64 = Annotated[str, Field(description="Base64 encoded file data")]
FileName = Annotated[str, Field(min_length=1, description="Name of the file")]
FileContentType = Annotated[
    str,
    AfterValidator(_check_content_type),
    Field(description=f"Content type of the file ({', '.join(FILE_CONTENT_TYPES)})"),
]


# =============================================================================
# Models
# =============================================================================


class ToolCallParams(BaseModel):
    """Fields shared by every tool call."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: SessionId
    correlation_id: CorrelationId
    user_id: UserId
    timestamp: Timestamp


class InputPromptParams(ToolCallParams):
    """Parameters for ``inputPrompt``."""

    content: Content


class AddFileParams(ToolCallParams):
    """Parameters for ``addFile``."""

    file_base64: FileBase64
    file_name: FileName
    file_content_type: FileContentType
    user_id: UserId | None = None


class ContentOrFileParams(ToolCallParams):
    """Content text or a file attachment; which one is sent is decided when building the request."""

    content: Content | None = None
    file_base64: FileBase64 | None = None
    file_name: FileName | None = None
    file_content_type: FileContentType | None = None


class IntermediateResultsParams(ContentOrFileParams):
    """Parameters for ``intermediateResults``."""

    resource_name: ResourceName


class ProcessingResultParams(ContentOrFileParams):
    """Parameters for ``processingResult``."""

    processing_time: ProcessingTime


def format_validation_error(exc: pydantic.ValidationError) -> str:
    """Flatten a pydantic error into a single readable line."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "params"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)
