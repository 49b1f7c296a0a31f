"""Unit tests for configuration and result types.

Run with: uv run pytest tests/ -v
"""

import pytest

from compliq_mcp.config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_HEARTBEAT_INTERVAL,
    DEFAULT_TIMEOUT,
    ENDPOINT_PATHS,
    FILE_CONTENT_TYPES,
    Settings,
    build_endpoints,
    get_port,
    load_settings,
    resolve_content_type,
)
from compliq_mcp.types import DecodeError, ToolResult, ValidationError


class TestLoadSettings:
    """Test environment loading."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch):
        """Unset variables should fall back to defaults."""
        for name in ("COMPLIQ_API_KEY", "COMPLIQ_API_BASE_URL", "COMPLIQ_TIMEOUT", "COMPLIQ_HEARTBEAT_INTERVAL"):
            monkeypatch.delenv(name, raising=False)

        settings = load_settings()
        assert settings.api_key == ""
        assert settings.api_base_url == DEFAULT_API_BASE_URL
        assert settings.timeout == DEFAULT_TIMEOUT
        assert settings.heartbeat_interval == DEFAULT_HEARTBEAT_INTERVAL
        assert settings.has_api_key is False

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch):
        """Environment variables should override defaults."""
        monkeypatch.setenv("COMPLIQ_API_KEY", "  secret-key  ")
        monkeypatch.setenv("COMPLIQ_API_BASE_URL", "https://example.test/api/")
        monkeypatch.setenv("COMPLIQ_TIMEOUT", "12.5")
        monkeypatch.setenv("COMPLIQ_HEARTBEAT_INTERVAL", "2")

        settings = load_settings()
        assert settings.api_key == "secret-key"
        assert settings.api_base_url == "https://example.test/api"
        assert settings.timeout == 12.5
        assert settings.heartbeat_interval == 2.0
        assert settings.endpoints["inputPrompt"] == "https://example.test/api/task-input"

    @pytest.mark.parametrize("value", ["abc", "0", "-3"])
    def test_invalid_numbers_rejected(self, monkeypatch: pytest.MonkeyPatch, value: str):
        """Non-numeric or non-positive values should raise."""
        monkeypatch.setenv("COMPLIQ_TIMEOUT", value)
        with pytest.raises(ValueError, match="COMPLIQ_TIMEOUT"):
            load_settings()

    def test_invalid_port_rejected(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("COMPLIQ_PORT", "http")
        with pytest.raises(ValueError, match="COMPLIQ_PORT"):
            get_port()


class TestEndpoints:
    """Test the endpoint table."""

    def test_one_endpoint_per_tool(self):
        endpoints = build_endpoints("https://api.test/v1/")
        assert set(endpoints) == set(ENDPOINT_PATHS)
        assert all(url.startswith("https://api.test/v1/") for url in endpoints.values())
        assert "//task" not in endpoints["addFile"]

    def test_endpoints_are_read_only(self):
        """The table must not change after startup."""
        endpoints = build_endpoints(DEFAULT_API_BASE_URL)
        with pytest.raises(TypeError):
            endpoints["inputPrompt"] = "https://evil.test"  # type: ignore[index]

    def test_settings_frozen(self):
        settings = Settings(api_key="k")
        with pytest.raises(AttributeError):
            settings.api_key = "other"  # type: ignore[misc]


class TestApiKeySummary:
    """The health check may expose existence, length and prefix only."""

    def test_summary_with_key(self):
        summary = Settings(api_key="abcdefghijkl").api_key_summary()
        assert summary == {"hasApiKey": True, "apiKeyLength": 12, "apiKeyFirstChars": "abcde..."}

    def test_summary_without_key(self):
        summary = Settings().api_key_summary()
        assert summary == {"hasApiKey": False, "apiKeyLength": 0, "apiKeyFirstChars": None}


class TestContentTypes:
    """Test fileContentType resolution."""

    @pytest.mark.parametrize("short,mime", list(FILE_CONTENT_TYPES.items()))
    def test_short_names(self, short: str, mime: str):
        assert resolve_content_type(short) == mime

    def test_mime_types_and_case(self):
        assert resolve_content_type("application/PDF") == "application/pdf"
        assert resolve_content_type(" PNG ") == "image/png"

    @pytest.mark.parametrize("value", ["exe", "text/html", ""])
    def test_unsupported(self, value: str):
        assert resolve_content_type(value) is None


class TestTypes:
    """Test result and error types."""

    def test_tool_result_shape(self):
        assert ToolResult(text="hi").to_dict() == {"content": [{"type": "text", "text": "hi"}]}

    def test_tool_result_error_prefix(self):
        assert ToolResult.error("boom").text == "Error: boom"

    def test_error_codes(self):
        error = ValidationError("bad", {"field": "content"})
        assert error.to_dict() == {"code": "VALIDATION_ERROR", "message": "bad", "details": {"field": "content"}}
        assert DecodeError("x").code == "DECODE_ERROR"
