"""
Authenticated multipart calls to the COMPLiQ REST API.

Every outcome (success, upstream HTTP error, transport failure) is normalized
into a ToolResult; nothing raises past send().
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from compliq_mcp.config import DEFAULT_TIMEOUT, LOGGER_NAME
from compliq_mcp.types import MultipartPayload, ToolResult

logger = logging.getLogger(LOGGER_NAME)

FILE_FIELD = "file"


def encode_multipart(payload: MultipartPayload) -> list[tuple[str, tuple[Any, ...]]]:
    """
    Convert a payload into httpx ``files`` entries.

    Text fields become filename-less parts so the body is multipart even when
    no file is attached.
    """
    parts: list[tuple[str, tuple[Any, ...]]] = [(name, (None, value)) for name, value in payload.fields.items()]
    if payload.file is not None:
        parts.append((FILE_FIELD, (payload.file.file_name, payload.file.data, payload.file.content_type)))
    return parts


class UpstreamClient:
    """Sends multipart payloads to the upstream API with a shared httpx client."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def send(self, endpoint: str, payload: MultipartPayload, api_key: str) -> ToolResult:
        """
        POST a payload to an endpoint.

        Args:
            endpoint: Absolute upstream URL
            payload: Form fields and optional file part
            api_key: Value forwarded as ``Authorization: x-api-key <key>``

        Returns:
            ToolResult with the compact JSON response, or an ``Error: ...`` text
        """
        if not api_key:
            logger.warning("⚠️ COMPLIQ_API_KEY is not set; upstream will likely reject %s", endpoint)

        try:
            response = await self._get_client().post(
                endpoint,
                headers={"Authorization": f"x-api-key {api_key}"},
                files=encode_multipart(payload),
            )
        except httpx.TimeoutException as e:
            logger.warning("   ❌ Timeout calling %s: %s", endpoint, e)
            return ToolResult.error(f"request to {endpoint} timed out after {self._timeout}s")
        except httpx.HTTPError as e:
            logger.warning("   ❌ Transport error calling %s: %s", endpoint, e)
            return ToolResult.error(str(e) or type(e).__name__)
        except Exception as e:
            logger.exception("   ❌ Unexpected error calling %s: %s", endpoint, e)
            return ToolResult.error(str(e) or type(e).__name__)

        if not response.is_success:
            logger.warning("   ❌ Upstream %s returned %d", endpoint, response.status_code)
            return ToolResult.error(f"{response.status_code} - {response.text}")

        try:
            result = response.json()
        except ValueError as e:
            logger.warning("   ❌ Upstream %s returned non-JSON body: %s", endpoint, e)
            return ToolResult.error(f"invalid JSON response: {e}")

        logger.info("   ✅ Upstream %s returned %d", endpoint, response.status_code)
        return ToolResult(text=json.dumps(result, separators=(",", ":"), ensure_ascii=False))
