# src/whisper_relay/main.py
"""Main entry point for the Whisper Relay application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from whisper_relay.api import keys_router, messages_router, relay_router, system_router
from whisper_relay.core.settings import settings
from whisper_relay.services.container import RelayServices, build_relay_services

logger = logging.getLogger(__name__)

DESCRIPTION = "Presence-aware signaling relay with offline mailboxes and prekey exchange"

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=DESCRIPTION,
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Include API routers; the relay channel shares the root path with the info endpoint
app.include_router(messages_router)
app.include_router(keys_router)
app.include_router(system_router)
app.include_router(relay_router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report incomplete or malformed request bodies as 400 Bad Request."""
    fields = sorted(
        {str(error["loc"][-1]) for error in exc.errors() if error.get("loc")}
    )
    detail = "Incomplete request"
    if fields:
        detail = f"Incomplete request, missing or invalid: {', '.join(fields)}"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


@app.on_event("startup")
async def on_startup() -> None:
    app.state.relay = build_relay_services()
    logger.info("%s %s ready", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    services: RelayServices | None = getattr(app.state, "relay", None)
    if services:
        stats = services.stats()
        logger.info(
            "Shutting down, discarding %d queued messages and %d key bundles",
            stats["queued_messages"],
            stats["key_bundles"],
        )
    app.state.relay = None


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": DESCRIPTION,
        "docs": "/docs",
    }


def run() -> None:
    """Run the relay under uvicorn on the configured host and port."""
    import uvicorn

    logging.basicConfig(
        level=settings.numeric_log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "whisper_relay.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
