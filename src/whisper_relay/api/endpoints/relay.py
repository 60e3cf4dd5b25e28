# src/whisper_relay/api/endpoints/relay.py
"""Persistent relay channel endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from whisper_relay.api.dependencies import RelayServicesDep
from whisper_relay.services.connection import WebSocketConnection

router = APIRouter(tags=["relay"])

logger = logging.getLogger(__name__)


@router.websocket("/")
async def relay_channel(websocket: WebSocket, services: RelayServicesDep) -> None:
    """Serve one client's relay connection until it closes.

    Frames are handled one at a time in arrival order. A transport error ends
    only this connection; the identity it held is released either way.
    """
    await websocket.accept()
    relay = services.router
    session = relay.open_session(WebSocketConnection(websocket))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # Binary frames carry the same JSON envelopes as text frames
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await relay.handle_frame(session, raw)
    except WebSocketDisconnect:
        pass
    except OSError as exc:
        logger.error("Relay transport error for %s: %s", session.label, exc, exc_info=True)
    finally:
        relay.close_session(session)
