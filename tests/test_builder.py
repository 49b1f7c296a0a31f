"""Unit tests for builder.py - parameters to multipart payloads."""

from __future__ import annotations

import pytest
from conftest import BASE_URL, PDF_BYTES, valid_arguments

from compliq_mcp.builder import MISSING_CONTENT_OR_FILE, build_request
from compliq_mcp.config import build_endpoints
from compliq_mcp.models import (
    AddFileParams,
    InputPromptParams,
    IntermediateResultsParams,
    ProcessingResultParams,
)
from compliq_mcp.types import DecodeError, ValidationError

ENDPOINTS = build_endpoints(BASE_URL)


def _build(tool: str, model, **overrides):
    params = model.model_validate(valid_arguments(tool, **overrides))
    return build_request(tool, params, ENDPOINTS)


class TestCommonFields:
    """Every payload carries the identifying fields."""

    def test_input_prompt(self):
        request = _build("inputPrompt", InputPromptParams)

        assert request.endpoint == f"{BASE_URL}/task-input"
        assert request.payload.fields == {
            "sessionId": "session-1",
            "correlationId": "corr-1",
            "timestamp": "01-31-2025 12:30:45",
            "userId": "user-1",
            "content": "What is the capital of France?",
        }
        assert request.payload.file is None

    def test_content_sent_verbatim(self):
        content = "  line one\nline two\t€  "
        request = _build("inputPrompt", InputPromptParams, content=content)
        assert request.payload.fields["content"] == content

    def test_each_tool_has_own_endpoint(self):
        urls = {
            _build("inputPrompt", InputPromptParams).endpoint,
            _build("addFile", AddFileParams).endpoint,
            _build("intermediateResults", IntermediateResultsParams).endpoint,
            _build("processingResult", ProcessingResultParams).endpoint,
        }
        assert len(urls) == 4


class TestAddFile:
    """addFile always sends a file part."""

    def test_file_part(self):
        request = _build("addFile", AddFileParams)

        assert "content" not in request.payload.fields
        assert request.payload.file is not None
        assert request.payload.file.file_name == "report.pdf"
        assert request.payload.file.content_type == "application/pdf"
        assert request.payload.file.data == PDF_BYTES

    def test_user_id_optional(self):
        request = _build("addFile", AddFileParams, userId=None)
        assert "userId" not in request.payload.fields

    def test_invalid_base64(self):
        with pytest.raises(DecodeError):
            _build("addFile", AddFileParams, fileBase64="not base64!")


class TestContentOrFile:
    """intermediateResults / processingResult union rule."""

    @pytest.mark.parametrize(
        "tool,model,extra_field,extra_value",
        [
            ("intermediateResults", IntermediateResultsParams, "resourceName", "search"),
            ("processingResult", ProcessingResultParams, "processingTime", "00:00:07"),
        ],
    )
    def test_content(self, tool, model, extra_field, extra_value):
        request = _build(tool, model)
        assert request.payload.fields[extra_field] == extra_value
        assert "content" in request.payload.fields
        assert request.payload.file is None

    @pytest.mark.parametrize(
        "tool,model", [("intermediateResults", IntermediateResultsParams), ("processingResult", ProcessingResultParams)]
    )
    def test_file_only(self, tool, model):
        request = _build(
            tool, model, content=None, fileBase64="aGVsbG8=", fileName="hello.txt", fileContentType="csv"
        )
        assert "content" not in request.payload.fields
        assert request.payload.file is not None
        assert request.payload.file.data == b"hello"
        assert request.payload.file.content_type == "text/csv"

    def test_content_takes_precedence(self):
        """Both supplied: content is sent and the file is ignored, even if its base64 is broken."""
        request = _build(
            "processingResult",
            ProcessingResultParams,
            fileBase64="%%%not-base64%%%",
            fileName="answer.pdf",
            fileContentType="pdf",
        )
        assert request.payload.fields["content"] == "The capital is Paris."
        assert request.payload.file is None

    def test_neither_fails(self):
        with pytest.raises(ValidationError, match=MISSING_CONTENT_OR_FILE):
            _build("intermediateResults", IntermediateResultsParams, content=None)

    @pytest.mark.parametrize(
        "tool,model", [("intermediateResults", IntermediateResultsParams), ("processingResult", ProcessingResultParams)]
    )
    @pytest.mark.parametrize("missing", ["fileBase64", "fileName", "fileContentType"])
    def test_partial_file_fails(self, tool, model, missing):
        fields = {"fileBase64": "aGVsbG8=", "fileName": "hello.txt", "fileContentType": "csv"}
        fields[missing] = None
        with pytest.raises(ValidationError, match=MISSING_CONTENT_OR_FILE):
            _build(tool, model, content=None, **fields)

    def test_empty_content_falls_back_to_file(self):
        request = _build(
            "intermediateResults",
            IntermediateResultsParams,
            content="",
            fileBase64="aGVsbG8=",
            fileName="hello.txt",
            fileContentType="text/csv",
        )
        assert request.payload.file is not None
        assert "content" not in request.payload.fields


class TestUnknownTool:
    def test_no_endpoint(self):
        params = InputPromptParams.model_validate(valid_arguments("inputPrompt"))
        with pytest.raises(ValidationError, match="no endpoint"):
            build_request("deleteEverything", params, ENDPOINTS)
