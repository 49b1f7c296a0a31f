"""
CORS headers for every HTTP response.

Applied as a pure ASGI middleware so streamed (SSE) and error responses get
the same headers as plain ones.
"""

from __future__ import annotations

from collections.abc import MutableMapping

from starlette.datastructures import MutableHeaders
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Max-Age": "86400",
}


def apply_cors(headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
    """Set the CORS headers on a header mapping and return it."""
    for name, value in CORS_HEADERS.items():
        headers[name] = value
    return headers


def preflight_response() -> Response:
    """Empty response answering an OPTIONS preflight."""
    response = Response(status_code=204)
    apply_cors(response.headers)
    return response


class CORSHeadersMiddleware:
    """Answer OPTIONS requests and add CORS headers to all other responses."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            await preflight_response()(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                apply_cors(MutableHeaders(scope=message))
            await send(message)

        await self.app(scope, receive, send_with_cors)
