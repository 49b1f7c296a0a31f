"""
COMPLiQ MCP Server

Exposes the COMPLiQ API as MCP tools:
- inputPrompt: Submit a user prompt for a session
- addFile: Attach a base64 encoded file to a session
- intermediateResults: Report an intermediate result (text or file)
- processingResult: Submit the final result with processing time (text or file)

Architecture:
- FastMCP for the stdio transport
- Starlette app (transport.py) for SSE, JSON-RPC over HTTP, health and CORS
- Both transports run tool calls through the same ToolRegistry, whose
  parameter models are the only validation layer
"""

# NOTE: Do NOT use `from __future__ import annotations` with FastMCP/Pydantic
# as it breaks type resolution for the Tool model fields below

import argparse
import logging
from typing import Any

import uvicorn
from fastmcp import FastMCP
from fastmcp.tools import Tool
from fastmcp.tools import ToolResult as McpToolResult
from pydantic import PrivateAttr

from compliq_mcp import __version__
from compliq_mcp.config import LOGGER_NAME, get_host, get_log_level, get_port
from compliq_mcp.registry import ToolHandler
from compliq_mcp.transport import SERVER_NAME, ServerContext, create_app

# Configure logging
logger = logging.getLogger(LOGGER_NAME)
logging.basicConfig(
    level=get_log_level(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

INSTRUCTIONS = """
COMPLiQ MCP Server - compliance tracking for AI sessions

Report every step of an AI interaction to COMPLiQ:
1. inputPrompt - the user's prompt
2. addFile - any file the user attached
3. intermediateResults - each resource response (text or file)
4. processingResult - the final answer and the time spent (text or file)

All calls share sessionId and correlationId; timestamps use MM-DD-YYYY HH:MM:SS.
"""


# =============================================================================
# Tools
# =============================================================================


class RegistryTool(Tool):
    """
    FastMCP tool backed by a ToolRegistry handler.

    Arguments reach the handler unvalidated; the handler reports bad input as
    an ``Error: ...`` text result like every other failure.
    """

    _handler: ToolHandler | None = PrivateAttr(default=None)

    def __init__(self, handler: ToolHandler, **data: Any):
        super().__init__(**data)
        self._handler = handler

    async def run(self, arguments: dict[str, Any]) -> McpToolResult:
        result = await self._handler(arguments)
        return McpToolResult(content=result.text)


def create_mcp(context: ServerContext) -> FastMCP:
    """Build a FastMCP server exposing the context's tools."""
    server = FastMCP(name=SERVER_NAME, instructions=INSTRUCTIONS)

    def register_tool(name: str, description: str, schema: dict[str, Any], handler: ToolHandler) -> None:
        server.add_tool(
            RegistryTool(
                handler,
                name=name,
                description=description,
                parameters=schema,
                annotations={"openWorldHint": True},
            )
        )

    context.tools.register(register_tool)
    return server


# =============================================================================
# Server Context
# =============================================================================

_context: ServerContext | None = None


def get_context() -> ServerContext:
    """Shared ServerContext, created on first use."""
    global _context
    if _context is None:
        _context = ServerContext.create()
    return _context


# =============================================================================
# Main Entry Point
# =============================================================================


def main(argv: list[str] | None = None) -> None:
    """Run the MCP server on stdio or the HTTP transport."""
    parser = argparse.ArgumentParser(prog="compliq-mcp", description=SERVER_NAME)
    parser.add_argument("--transport", choices=["stdio", "http"], default="http")
    parser.add_argument("--host", default=get_host())
    parser.add_argument("--port", type=int, default=get_port())
    args = parser.parse_args(argv)

    context = get_context()
    if args.transport == "stdio":
        logger.info("🚀 Starting %s v%s (FastMCP)", SERVER_NAME, __version__)
        logger.info("   Transport: stdio")
        create_mcp(context).run(transport="stdio")
        return

    logger.info("   Listening on http://%s:%d", args.host, args.port)
    uvicorn.run(create_app(context), host=args.host, port=args.port, log_level=get_log_level().lower())


# Export for use as module
__all__ = ["RegistryTool", "create_mcp", "get_context", "main"]


if __name__ == "__main__":
    main()
