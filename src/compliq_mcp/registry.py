"""
The four COMPLiQ tools and the pipeline that runs them.

validate (pydantic) -> build_request -> UpstreamClient.send -> ToolResult
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import pydantic

from compliq_mcp.builder import build_request
from compliq_mcp.config import LOGGER_NAME, Settings
from compliq_mcp.models import (
    AddFileParams,
    InputPromptParams,
    IntermediateResultsParams,
    ProcessingResultParams,
    ToolCallParams,
    format_validation_error,
)
from compliq_mcp.types import CompliqError, ToolResult, UnknownToolError
from compliq_mcp.upstream import UpstreamClient

logger = logging.getLogger(LOGGER_NAME)

# handler(arguments) -> ToolResult
ToolHandler = Callable[[dict[str, Any] | None], Awaitable[ToolResult]]
# register_tool(name, description, input_schema, handler)
RegisterTool = Callable[[str, str, dict[str, Any], ToolHandler], Any]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """A named tool with its parameter model."""

    name: str
    description: str
    params_model: type[ToolCallParams]

    def input_schema(self) -> dict[str, Any]:
        return self.params_model.model_json_schema(by_alias=True)


TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="inputPrompt",
        description="Submit a user input prompt to COMPLiQ for a session.",
        params_model=InputPromptParams,
    ),
    ToolSpec(
        name="addFile",
        description="Attach a base64 encoded file to a COMPLiQ session.",
        params_model=AddFileParams,
    ),
    ToolSpec(
        name="intermediateResults",
        description=(
            "Report an intermediate result produced by a resource, "
            "either as plain text content or as a base64 encoded file."
        ),
        params_model=IntermediateResultsParams,
    ),
    ToolSpec(
        name="processingResult",
        description=(
            "Submit the final processing result with the time spent, "
            "either as plain text content or as a base64 encoded file."
        ),
        params_model=ProcessingResultParams,
    ),
)


class ToolRegistry:
    """Dispatches tool calls by name through the request pipeline."""

    def __init__(self, settings: Settings, upstream: UpstreamClient, tools: tuple[ToolSpec, ...] = TOOLS) -> None:
        self.settings = settings
        self.upstream = upstream
        self._tools = {tool.name: tool for tool in tools}

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> ToolSpec:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(f"Unknown tool: {name}", {"tool": name}) from None

    def describe(self) -> list[dict[str, Any]]:
        """List tools with their JSON schemas."""
        return [
            {"name": tool.name, "description": tool.description, "inputSchema": tool.input_schema()}
            for tool in self._tools.values()
        ]

    def register(self, register_tool: RegisterTool) -> None:
        """
        Hand every tool to a host's registration hook.

        Handlers take the raw arguments and run them through ``call``, so the
        parameter models stay the only validation layer.
        """
        for tool in self._tools.values():
            register_tool(tool.name, tool.description, tool.input_schema(), functools.partial(self.call, tool.name))

    async def call(self, name: str, arguments: dict[str, Any] | None) -> ToolResult:
        """
        Run one tool call.

        Raises:
            UnknownToolError: If no tool has this name

        Every other failure is returned as an ``Error: ...`` ToolResult.
        """
        tool = self.get(name)

        try:
            params = tool.params_model.model_validate(arguments or {})
        except pydantic.ValidationError as e:
            message = format_validation_error(e)
            logger.warning("⚠️ %s rejected: %s", name, message)
            return ToolResult.error(message)

        logger.info("📤 %s: session=%s correlation=%s", name, params.session_id, params.correlation_id)

        try:
            request = build_request(name, params, self.settings.endpoints)
        except CompliqError as e:
            logger.warning("⚠️ %s rejected: %s", name, e.message)
            return ToolResult.error(e.message)

        try:
            return await self.upstream.send(request.endpoint, request.payload, self.settings.api_key)
        except Exception as e:
            logger.exception("%s failed: %s", name, e)
            return ToolResult.error(str(e) or type(e).__name__)
