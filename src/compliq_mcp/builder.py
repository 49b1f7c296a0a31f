"""
Translate validated tool parameters into outbound multipart requests.

No I/O happens here: the result is a payload plus the endpoint to send it to.
"""

from __future__ import annotations

from typing import Mapping

from compliq_mcp.codec import decode_base64
from compliq_mcp.config import resolve_content_type
from compliq_mcp.models import (
    AddFileParams,
    ContentOrFileParams,
    InputPromptParams,
    IntermediateResultsParams,
    ProcessingResultParams,
    ToolCallParams,
)
from compliq_mcp.types import FilePart, MultipartPayload, UpstreamRequest, ValidationError

MISSING_CONTENT_OR_FILE = "either content or file must be provided"


def build_request(tool_name: str, params: ToolCallParams, endpoints: Mapping[str, str]) -> UpstreamRequest:
    """
    Build the upstream request for one tool call.

    Raises:
        ValidationError: If the parameters do not fit the tool
        DecodeError: If a file payload is not valid base64
    """
    endpoint = endpoints.get(tool_name)
    if endpoint is None:
        raise ValidationError(f"no endpoint configured for tool {tool_name!r}")

    payload = MultipartPayload()
    payload.add("sessionId", params.session_id)
    payload.add("correlationId", params.correlation_id)
    payload.add("timestamp", params.timestamp)
    payload.add("userId", params.user_id)

    if isinstance(params, InputPromptParams):
        payload.add("content", params.content)
    elif isinstance(params, AddFileParams):
        payload.file = _file_part(params.file_base64, params.file_name, params.file_content_type)
    elif isinstance(params, ContentOrFileParams):
        if isinstance(params, IntermediateResultsParams):
            payload.add("resourceName", params.resource_name)
        elif isinstance(params, ProcessingResultParams):
            payload.add("processingTime", params.processing_time)
        _attach_content_or_file(payload, params)
    else:
        raise ValidationError(f"unsupported parameters for tool {tool_name!r}")

    return UpstreamRequest(endpoint=endpoint, payload=payload)


def _attach_content_or_file(payload: MultipartPayload, params: ContentOrFileParams) -> None:
    # Content wins when both are supplied
    if params.content:
        payload.add("content", params.content)
        return

    if params.file_base64 and params.file_name and params.file_content_type:
        payload.file = _file_part(params.file_base64, params.file_name, params.file_content_type)
        return

    raise ValidationError(MISSING_CONTENT_OR_FILE)


def _file_part(file_base64: str, file_name: str, file_content_type: str) -> FilePart:
    content_type = resolve_content_type(file_content_type)
    if content_type is None:
        raise ValidationError(f"unsupported content type {file_content_type!r}")
    return FilePart(
        file_name=file_name,
        content_type=content_type,
        data=decode_base64(file_base64),
    )
