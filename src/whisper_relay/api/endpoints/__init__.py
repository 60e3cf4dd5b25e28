"""API endpoint modules."""

from .keys import router as keys_router
from .messages import router as messages_router
from .relay import router as relay_router
from .system import router as system_router

__all__ = [
    "keys_router",
    "messages_router",
    "relay_router",
    "system_router",
]
