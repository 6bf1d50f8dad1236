"""
Connection handles: the transport-level object behind one viewer.

The registry, broadcast helpers and liveness monitor only depend on the
Connection protocol, so they can be driven by a real WebSocket or by an
in-memory fake in tests. Transport faults never propagate: a failed send or
ping marks the handle closed and the next liveness sweep evicts it.

Client requirement: the heartbeat is the text frame {"type":"ping"}, and only
an inbound frame (any content, e.g. {"type":"pong"}) acknowledges it. A
client that never sends is evicted after two heartbeat intervals (60 s by
default), so frontends must answer each ping frame.
"""

from __future__ import annotations

import json
from typing import Protocol, runtime_checkable

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from identity_profiler.profiler_logging import get_logger

logger = get_logger(__name__)

HEARTBEAT_FRAME = json.dumps({"type": "ping"}, separators=(",", ":"))
# Going Away: server-side termination of a dead or shutting-down connection
CLOSE_GOING_AWAY = 1001


@runtime_checkable
class Connection(Protocol):
    """Transport handle. Hashable by identity; used as a registry key."""

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None: ...

    async def ping(self) -> None: ...

    async def terminate(self) -> None: ...


class WebSocketConnection:
    """Connection adapter over a FastAPI/Starlette WebSocket."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._closed = False

    @property
    def websocket(self) -> WebSocket:
        return self._websocket

    @property
    def is_open(self) -> bool:
        if self._closed:
            return False
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    def mark_closed(self) -> None:
        self._closed = True

    async def send_text(self, data: str) -> None:
        if not self.is_open:
            return
        try:
            await self._websocket.send_text(data)
        except Exception as e:
            self._closed = True
            logger.debug("ws_send_failed", error=str(e))

    async def ping(self) -> None:
        # ASGI exposes no protocol-level ping; the client answers with any text frame.
        await self.send_text(HEARTBEAT_FRAME)

    async def terminate(self) -> None:
        if self._websocket.application_state == WebSocketState.DISCONNECTED:
            self._closed = True
            return
        self._closed = True
        try:
            await self._websocket.close(code=CLOSE_GOING_AWAY)
        except Exception as e:
            logger.debug("ws_terminate_failed", error=str(e))
