"""HTTP and WebSocket endpoints."""

from .endpoints import keys_router, messages_router, relay_router, system_router

__all__ = [
    "keys_router",
    "messages_router",
    "relay_router",
    "system_router",
]
