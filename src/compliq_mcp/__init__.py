"""COMPLiQ MCP Server

MCP tools that report AI interactions to the COMPLiQ API:
- inputPrompt: Submit a user prompt
- addFile: Attach a file
- intermediateResults: Report an intermediate result
- processingResult: Submit the final result
"""

try:
    from importlib.metadata import PackageNotFoundError, version
except (ImportError, ModuleNotFoundError):
    __version__ = "0.0.0+unknown"
else:
    try:
        __version__ = version("compliq-mcp")
    except PackageNotFoundError:
        __version__ = "0.0.0+unknown"

from compliq_mcp.builder import build_request
from compliq_mcp.codec import decode_base64
from compliq_mcp.registry import TOOLS, ToolRegistry, ToolSpec
from compliq_mcp.server import create_mcp, main
from compliq_mcp.transport import ServerContext, create_app
from compliq_mcp.types import (
    CompliqError,
    DecodeError,
    FilePart,
    MultipartPayload,
    ToolResult,
    UnknownToolError,
    UpstreamRequest,
    ValidationError,
)
from compliq_mcp.upstream import UpstreamClient

__all__ = [
    "__version__",
    "CompliqError",
    "DecodeError",
    "FilePart",
    "MultipartPayload",
    "ServerContext",
    "TOOLS",
    "ToolRegistry",
    "ToolResult",
    "ToolSpec",
    "UnknownToolError",
    "UpstreamClient",
    "UpstreamRequest",
    "ValidationError",
    "build_request",
    "create_app",
    "create_mcp",
    "decode_base64",
    "main",
]
