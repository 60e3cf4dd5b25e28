"""Live relay channel abstraction and its WebSocket implementation."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Protocol, runtime_checkable

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from whisper_relay.core.errors import ConnectionClosedError


@runtime_checkable
class Connection(Protocol):
    """An open bidirectional channel a user can be reached on."""

    @property
    def is_open(self) -> bool:
        """Return True while the channel can accept outbound frames."""
        ...

    async def send_json(self, payload: dict[str, Any]) -> None:
        """Serialize ``payload`` and push it down the channel.

        Raises:
            ConnectionClosedError: The channel can no longer be written to.
        """
        ...


class WebSocketConnection:
    """Adapter exposing a Starlette WebSocket as a relay :class:`Connection`.

    Outbound frames are serialized through a lock because the relay loop and
    HTTP request handlers may both push to the same socket.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._send_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return (
            self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_json(self, payload: dict[str, Any]) -> None:
        async with self._send_lock:
            try:
                await self._websocket.send_text(json.dumps(payload))
            except (WebSocketDisconnect, RuntimeError, OSError) as exc:
                raise ConnectionClosedError(str(exc) or type(exc).__name__) from exc

    def __repr__(self) -> str:
        client = self._websocket.client
        peer = f"{client.host}:{client.port}" if client else "unknown"
        return f"WebSocketConnection(peer={peer})"
