"""System and transparency endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from whisper_relay.api.dependencies import RelayServicesDep
from whisper_relay.core.settings import settings

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Returns:
        Dictionary containing app metadata, listener port and CORS policy
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "listener": {
            "port": settings.port,
        },
        "cors": {
            "origins": settings.cors_origins,
            "methods": settings.cors_allow_methods,
        },
    }


@router.get("/stats")
async def get_stats(services: RelayServicesDep) -> dict[str, int]:
    """Return live counters for presence, queued messages and key bundles."""
    return services.stats()


@router.get("/presence/{user_id}")
async def get_presence(user_id: str, services: RelayServicesDep) -> dict[str, object]:
    """Report whether ``user_id`` currently holds an open relay connection."""
    return {"userId": user_id, "online": services.presence.is_online(user_id)}
