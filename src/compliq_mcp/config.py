"""
Configuration management for the COMPLiQ MCP Server.

All configuration is loaded from environment variables with sensible defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

LOGGER_NAME = "compliq_mcp"


# =============================================================================
# Upstream API
# =============================================================================

DEFAULT_API_BASE_URL = "https://ai-stage-be.compliq.io/v1/actions"

# Tool name -> path under the API base URL
ENDPOINT_PATHS = {
    "inputPrompt": "task-input",
    "addFile": "task-file",
    "intermediateResults": "task-intermediate-results",
    "processingResult": "task-result",
}


# =============================================================================
# Limits, Timeouts and Intervals
# =============================================================================

MAX_ID_LENGTH = 100
MAX_CONTENT_LENGTH = 40000

DEFAULT_TIMEOUT = 30.0  # seconds per upstream call
DEFAULT_HEARTBEAT_INTERVAL = 5.0  # seconds between SSE heartbeats
SSE_QUEUE_SIZE = 256  # pending frames per SSE client before it is dropped

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8787

# Accepted fileContentType values: short name -> MIME type
FILE_CONTENT_TYPES = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "mp3": "audio/mpeg",
    "mp4": "video/mp4",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pdf": "application/pdf",
    "csv": "text/csv",
    "xml": "application/xml",
    "ogg": "audio/ogg",
}


# =============================================================================
# Getters
# =============================================================================


def get_api_key() -> str:
    """Get the COMPLiQ API key from environment (empty when unset)."""
    return os.environ.get("COMPLIQ_API_KEY", "").strip()


def get_api_base_url() -> str:
    """Get the API base URL with env override support."""
    return os.environ.get("COMPLIQ_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/")


def get_timeout() -> float:
    """Get the upstream request timeout in seconds."""
    return _get_float("COMPLIQ_TIMEOUT", DEFAULT_TIMEOUT)


def get_heartbeat_interval() -> float:
    """Get the SSE heartbeat interval in seconds."""
    return _get_float("COMPLIQ_HEARTBEAT_INTERVAL", DEFAULT_HEARTBEAT_INTERVAL)


def get_host() -> str:
    return os.environ.get("COMPLIQ_HOST", DEFAULT_HOST)


def get_port() -> int:
    raw = os.environ.get("COMPLIQ_PORT")
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"COMPLIQ_PORT must be an integer, got {raw!r}") from e


def get_log_level() -> str:
    return os.environ.get("COMPLIQ_LOG_LEVEL", "INFO").upper()


def _get_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def build_endpoints(base_url: str) -> Mapping[str, str]:
    """Build the read-only tool name -> URL table for a base URL."""
    base = base_url.rstrip("/")
    return MappingProxyType({name: f"{base}/{path}" for name, path in ENDPOINT_PATHS.items()})


def resolve_content_type(value: str) -> str | None:
    """Map a fileContentType value to its MIME type, or None if unsupported."""
    normalized = value.strip().lower()
    if normalized in FILE_CONTENT_TYPES:
        return FILE_CONTENT_TYPES[normalized]
    if normalized in FILE_CONTENT_TYPES.values():
        return normalized
    return None


# =============================================================================
# Settings
# =============================================================================


@dataclass(frozen=True, slots=True)
class Settings:
    """Process-wide configuration, read-only after startup."""

    api_key: str = ""
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL
    endpoints: Mapping[str, str] = field(default_factory=lambda: build_endpoints(DEFAULT_API_BASE_URL))

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def api_key_summary(self) -> dict[str, object]:
        """Describe the API key without revealing it."""
        return {
            "hasApiKey": self.has_api_key,
            "apiKeyLength": len(self.api_key),
            "apiKeyFirstChars": f"{self.api_key[:5]}..." if self.api_key else None,
        }


def load_settings() -> Settings:
    """Load settings from environment."""
    base_url = get_api_base_url()
    return Settings(
        api_key=get_api_key(),
        api_base_url=base_url,
        timeout=get_timeout(),
        heartbeat_interval=get_heartbeat_interval(),
        endpoints=build_endpoints(base_url),
    )
