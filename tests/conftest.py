"""Shared fixtures: valid tool arguments, settings and a recording upstream API."""

from __future__ import annotations

import base64
import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from compliq_mcp.config import Settings, build_endpoints
from compliq_mcp.upstream import UpstreamClient

BASE_URL = "https://compliq.test/v1/actions"
API_KEY = "test-key-123456"

PDF_BYTES = b"%PDF-1.7\n\x00\x01\x02binary\xff"
PDF_BASE64 = base64.b64encode(PDF_BYTES).decode("ascii")

COMMON = {
    "sessionId": "session-1",
    "correlationId": "corr-1",
    "userId": "user-1",
    "timestamp": "01-31-2025 12:30:45",
}

FILE_FIELDS = {
    "fileBase64": PDF_BASE64,
    "fileName": "report.pdf",
    "fileContentType": "pdf",
}

VALID_ARGUMENTS: dict[str, dict[str, Any]] = {
    "inputPrompt": {**COMMON, "content": "What is the capital of France?"},
    "addFile": {**COMMON, **FILE_FIELDS},
    "intermediateResults": {**COMMON, "resourceName": "search", "content": "Paris"},
    "processingResult": {**COMMON, "processingTime": "00:00:07", "content": "The capital is Paris."},
}


def valid_arguments(tool: str, **overrides: Any) -> dict[str, Any]:
    """A fresh copy of valid arguments for a tool, with overrides (None removes a key)."""
    arguments = dict(VALID_ARGUMENTS[tool])
    for key, value in overrides.items():
        if value is None:
            arguments.pop(key, None)
        else:
            arguments[key] = value
    return arguments


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key=API_KEY, api_base_url=BASE_URL, timeout=5.0, endpoints=build_endpoints(BASE_URL))


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays one response."""

    def __init__(self, status_code: int = 200, body: Any = None, raises: Exception | None = None):
        self.status_code = status_code
        self.body = {"id": "abc"} if body is None else body
        self.raises = raises
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raises is not None:
            raise self.raises
        if isinstance(self.body, (dict, list)):
            return httpx.Response(self.status_code, content=json.dumps(self.body).encode())
        return httpx.Response(self.status_code, text=self.body)


@pytest.fixture
def make_upstream() -> Callable[..., tuple[UpstreamClient, RecordingHandler]]:
    def factory(**kwargs: Any) -> tuple[UpstreamClient, RecordingHandler]:
        handler = RecordingHandler(**kwargs)
        return UpstreamClient(timeout=5.0, transport=httpx.MockTransport(handler)), handler

    return factory
