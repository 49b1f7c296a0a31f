"""
HTTP transport for the COMPLiQ MCP Server.

Routes:
- GET  /health       liveness and API key presence (never calls upstream)
- GET  /sse          open an SSE session (heartbeats + forwarded replies); also GET /sse/message
- POST /sse/message  JSON-RPC message for an open session, reply sent on its stream
- POST /mcp          synchronous JSON-RPC
- OPTIONS *          CORS preflight (see cors.py)
"""

from __future__ import annotations

import contextlib
import json
import logging
import traceback
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from starlette.applications import Starlette
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from compliq_mcp import __version__
from compliq_mcp.config import LOGGER_NAME, Settings, load_settings
from compliq_mcp.cors import CORSHeadersMiddleware
from compliq_mcp.registry import ToolRegistry
from compliq_mcp.sse import SseClientRegistry, SseConnection, utc_now
from compliq_mcp.types import UnknownToolError
from compliq_mcp.upstream import UpstreamClient

logger = logging.getLogger(LOGGER_NAME)

SERVER_NAME = "COMPLiQ MCP Server"
PROTOCOL_VERSION = "2024-11-05"

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
SERVER_ERROR = -32000

_ERROR_STATUS = {PARSE_ERROR: 400, INVALID_REQUEST: 400, SERVER_ERROR: 500}


# =============================================================================
# Server Context
# =============================================================================


@dataclass(slots=True)
class ServerContext:
    """Everything one server process shares between requests."""

    settings: Settings
    tools: ToolRegistry
    clients: SseClientRegistry
    upstream: UpstreamClient

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        upstream: UpstreamClient | None = None,
        clients: SseClientRegistry | None = None,
    ) -> ServerContext:
        settings = settings or load_settings()
        upstream = upstream or UpstreamClient(timeout=settings.timeout)
        return cls(
            settings=settings,
            tools=ToolRegistry(settings, upstream),
            clients=clients if clients is not None else SseClientRegistry(),
            upstream=upstream,
        )


# =============================================================================
# JSON-RPC
# =============================================================================


class JsonRpcError(Exception):
    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)


def error_envelope(code: int, message: str, request_id: Any = None, data: Any = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "error": error, "id": request_id}


def result_envelope(result: Any, request_id: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "result": result, "id": request_id}


async def dispatch(message: Any, tools: ToolRegistry) -> dict[str, Any] | None:
    """
    Handle one JSON-RPC message.

    Returns the response envelope, or None for notifications (no ``id``).
    """
    if not isinstance(message, dict) or not isinstance(message.get("method"), str):
        request_id = message.get("id") if isinstance(message, dict) else None
        return error_envelope(INVALID_REQUEST, "Invalid Request", request_id)

    method = message["method"]
    request_id = message.get("id")
    is_notification = "id" not in message
    params = message.get("params") or {}

    try:
        result = await _call_method(method, params, tools)
    except JsonRpcError as e:
        if is_notification:
            return None
        return error_envelope(e.code, e.message, request_id, e.data)
    except Exception as e:
        logger.exception("JSON-RPC %s failed: %s", method, e)
        if is_notification:
            return None
        return error_envelope(
            SERVER_ERROR, str(e) or type(e).__name__, request_id, {"stack": traceback.format_exc()}
        )

    if is_notification:
        return None
    return result_envelope(result, request_id)


async def _call_method(method: str, params: Any, tools: ToolRegistry) -> Any:
    if method == "initialize":
        return {
            "protocolVersion": params.get("protocolVersion", PROTOCOL_VERSION)
            if isinstance(params, dict)
            else PROTOCOL_VERSION,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }
    if method == "ping" or method.startswith("notifications/"):
        return {}
    if method in ("describe", "tools/list"):
        return {"tools": tools.describe()}
    if method in ("run", "tools/call"):
        if not isinstance(params, dict) or not isinstance(params.get("name"), str):
            raise JsonRpcError(INVALID_PARAMS, "params.name is required")
        try:
            result = await tools.call(params["name"], params.get("arguments"))
        except UnknownToolError as e:
            raise JsonRpcError(INVALID_PARAMS, e.message, e.details) from e
        return result.to_dict()
    raise JsonRpcError(METHOD_NOT_FOUND, f"Method not found: {method}")


async def dispatch_body(body: bytes, tools: ToolRegistry) -> tuple[Any, int]:
    """Parse a request body (single message or batch) and dispatch it.

    Returns the response payload (None when nothing needs answering) and an HTTP status.
    """
    try:
        message = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        return error_envelope(PARSE_ERROR, f"Parse error: {e}"), 400

    if isinstance(message, list):
        if not message:
            return error_envelope(INVALID_REQUEST, "Invalid Request"), 400
        responses = [response for item in message if (response := await dispatch(item, tools)) is not None]
        return (responses, 200) if responses else (None, 202)

    response = await dispatch(message, tools)
    if response is None:
        return None, 202
    error = response.get("error")
    return response, _ERROR_STATUS.get(error["code"], 200) if error else 200


# =============================================================================
# SSE
# =============================================================================


class SseResponse(StreamingResponse):
    """Streams an SseConnection and closes it however the response ends."""

    media_type = "text/event-stream"

    def __init__(self, connection: SseConnection) -> None:
        super().__init__(
            connection.stream(),
            headers={"Cache-Control": "no-cache, no-transform", "X-Accel-Buffering": "no"},
        )
        self.connection = connection

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self.connection.close()


# =============================================================================
# Routes
# =============================================================================


def _context(request: Request) -> ServerContext:
    return request.app.state.context


async def health(request: Request) -> Response:
    ctx = _context(request)
    return JSONResponse(
        {
            "status": "ok",
            "timestamp": utc_now(),
            **ctx.settings.api_key_summary(),
            "sseClients": len(ctx.clients),
        }
    )


async def sse_connect(request: Request) -> Response:
    ctx = _context(request)
    try:
        connection = SseConnection(ctx.clients, heartbeat_interval=ctx.settings.heartbeat_interval)
        connection.open()
    except Exception as e:
        logger.exception("SSE setup failed: %s", e)
        return PlainTextResponse(f"SSE error: {e}", status_code=500)
    return SseResponse(connection)


async def sse_message(request: Request) -> Response:
    ctx = _context(request)
    session_id = request.query_params.get("sessionId")
    if not session_id:
        return PlainTextResponse("Missing sessionId", status_code=400)

    connection = ctx.clients.get(session_id)
    if connection is None or not connection.is_open:
        return PlainTextResponse("Unknown session", status_code=404)

    try:
        payload, status = await dispatch_body(await request.body(), ctx.tools)
    except Exception as e:
        logger.exception("SSE message failed: %s", e)
        return PlainTextResponse(f"Server error: {e}", status_code=500)

    if status == 400:
        return JSONResponse(payload, status_code=400)
    if payload is not None:
        connection.send("message", payload)
    return PlainTextResponse("Accepted", status_code=202)


async def mcp_endpoint(request: Request) -> Response:
    ctx = _context(request)
    try:
        payload, status = await dispatch_body(await request.body(), ctx.tools)
    except Exception as e:
        logger.exception("MCP request failed: %s", e)
        payload, status = error_envelope(SERVER_ERROR, str(e), data={"stack": traceback.format_exc()}), 500

    if payload is None:
        return Response(status_code=status)
    return JSONResponse(payload, status_code=status)


async def http_error(request: Request, exc: HTTPException) -> Response:
    return PlainTextResponse("Not found" if exc.status_code == 404 else exc.detail, status_code=exc.status_code)


# =============================================================================
# Application
# =============================================================================


def create_app(context: ServerContext | None = None) -> Starlette:
    """Build the Starlette application around a ServerContext."""
    context = context or ServerContext.create()

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        summary = context.settings.api_key_summary()
        logger.info("🚀 %s v%s (HTTP transport)", SERVER_NAME, __version__)
        logger.info("   API key present: %s (prefix %s)", summary["hasApiKey"], summary["apiKeyFirstChars"])
        logger.info("   COMPLiQ API: %s", context.settings.api_base_url)
        try:
            yield
        finally:
            context.clients.close_all()
            await context.upstream.aclose()

    app = Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/sse", sse_connect, methods=["GET"]),
            Route("/sse", sse_message, methods=["POST"]),
            Route("/sse/message", sse_message, methods=["POST"]),
            Route("/sse/message", sse_connect, methods=["GET"]),
            Route("/mcp", mcp_endpoint, methods=["POST"]),
        ],
        middleware=[Middleware(CORSHeadersMiddleware)],
        exception_handlers={HTTPException: http_error},
        lifespan=lifespan,
    )
    app.state.context = context
    return app
