"""
Server-Sent Events sessions.

Each connection moves through CONNECTING -> OPEN -> CLOSING -> CLOSED. All
frames for one connection go through a single queue drained by one writer
(the response stream), so heartbeats and forwarded messages never interleave
mid-frame.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from compliq_mcp.config import DEFAULT_HEARTBEAT_INTERVAL, LOGGER_NAME, SSE_QUEUE_SIZE

logger = logging.getLogger(LOGGER_NAME)

MESSAGE_ENDPOINT = "/sse/message"


class ConnectionState(str, Enum):
    """Lifecycle of one SSE connection."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


def format_sse(event: str, data: Any) -> str:
    """Render one SSE frame; non-string data is JSON encoded."""
    text = data if isinstance(data, str) else json.dumps(data, separators=(",", ":"))
    lines = [f"event: {event}"]
    lines.extend(f"data: {line}" for line in text.split("\n"))
    return "\n".join(lines) + "\n\n"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


# =============================================================================
# Client Registry
# =============================================================================


class SseClientRegistry:
    """Process-wide set of open SSE connections, keyed by client id.

    Only mutated from the event loop, which serializes add/remove/iterate.
    """

    def __init__(self) -> None:
        self._clients: dict[str, SseConnection] = {}

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._clients

    def add(self, connection: SseConnection) -> None:
        self._clients[connection.client_id] = connection

    def remove(self, client_id: str) -> bool:
        """Remove a client; returns False if it was already gone."""
        return self._clients.pop(client_id, None) is not None

    def get(self, client_id: str) -> SseConnection | None:
        return self._clients.get(client_id)

    @property
    def client_ids(self) -> list[str]:
        return list(self._clients)

    def close_all(self) -> None:
        """Close every connection (process shutdown)."""
        for connection in list(self._clients.values()):
            connection.close()


# =============================================================================
# Connection
# =============================================================================


class SseConnection:
    """One SSE client: writer queue, heartbeat task and registry membership."""

    def __init__(
        self,
        registry: SseClientRegistry,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        client_id: str | None = None,
        queue_size: int = SSE_QUEUE_SIZE,
    ) -> None:
        self.registry = registry
        self.heartbeat_interval = heartbeat_interval
        self.client_id = client_id or uuid.uuid4().hex
        self.state = ConnectionState.CONNECTING
        self.heartbeat_task: asyncio.Task[None] | None = None
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=queue_size)

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    @property
    def message_endpoint(self) -> str:
        return f"{MESSAGE_ENDPOINT}?sessionId={self.client_id}"

    def open(self) -> None:
        """Emit the greeting frames, start heartbeats and register the client."""
        if self.state is not ConnectionState.CONNECTING:
            raise RuntimeError(f"cannot open SSE connection in state {self.state.value}")

        self._put(format_sse("connected", {"clientId": self.client_id}))
        self._put(format_sse("endpoint", self.message_endpoint))
        self.heartbeat_task = asyncio.create_task(self._heartbeat(), name=f"sse-heartbeat-{self.client_id}")
        self.registry.add(self)
        self.state = ConnectionState.OPEN
        logger.info("🔌 SSE client connected: %s (%d open)", self.client_id, len(self.registry))

    def send(self, event: str, data: Any) -> bool:
        """
        Queue one frame for the client.

        Returns False when the frame was dropped because the connection is
        closed or could not accept more frames (the latter closes it).
        """
        if not self.is_open:
            logger.debug("Dropping %s frame for closed SSE client %s", event, self.client_id)
            return False
        try:
            self._put(format_sse(event, data))
        except asyncio.QueueFull:
            logger.warning("⚠️ SSE client %s is not reading; closing", self.client_id)
            self.close()
            return False
        return True

    def close(self) -> None:
        """Stop heartbeats, leave the registry and end the stream. Idempotent."""
        if self.state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return
        self.state = ConnectionState.CLOSING

        if self.heartbeat_task is not None and not self.heartbeat_task.done():
            self.heartbeat_task.cancel()
        self.registry.remove(self.client_id)

        # Pending frames are discarded; the sentinel ends stream()
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

        self.state = ConnectionState.CLOSED
        logger.info("🔌 SSE client disconnected: %s (%d open)", self.client_id, len(self.registry))

    async def stream(self) -> AsyncIterator[str]:
        """Yield frames in order until the connection closes."""
        try:
            while True:
                frame = await self._queue.get()
                if frame is None:
                    break
                yield frame
        finally:
            self.close()

    def _put(self, frame: str) -> None:
        self._queue.put_nowait(frame)

    async def _heartbeat(self) -> None:
        while self.is_open:
            await asyncio.sleep(self.heartbeat_interval)
            if not self.send("heartbeat", utc_now()):
                return
