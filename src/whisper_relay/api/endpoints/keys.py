# src/whisper_relay/api/endpoints/keys.py
"""Prekey bundle upload and fetch endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from whisper_relay.api.dependencies import DeliveryGatewayDep
from whisper_relay.core.errors import (
    KeyBundleNotFoundError,
    OneTimeKeysExhaustedError,
)
from whisper_relay.schemas.keys import KeyBundleResponse, KeyUploadRequest, OneTimePreKeyOut
from whisper_relay.schemas.messages import SuccessResponse
from whisper_relay.services.prekeys import OneTimePreKey

router = APIRouter(prefix="/keys", tags=["keys"])

logger = logging.getLogger(__name__)


@router.post("/upload", response_model=SuccessResponse)
async def upload_keys(
    bundle_data: KeyUploadRequest,
    gateway: DeliveryGatewayDep,
) -> SuccessResponse:
    """Publish a prekey bundle, replacing any previous one."""
    one_time_pre_keys = [
        OneTimePreKey(key_id=key.id, public_key=key.public_key)
        for key in bundle_data.one_time_pre_keys
    ]
    gateway.upload_keys(
        bundle_data.user_id,
        bundle_data.identity_key,
        bundle_data.signed_pre_key,
        one_time_pre_keys,
    )

    return SuccessResponse()


@router.get("/{user_id}", response_model=KeyBundleResponse)
async def fetch_keys(user_id: str, gateway: DeliveryGatewayDep) -> KeyBundleResponse:
    """Return a user's durable keys plus one freshly consumed one-time key."""
    try:
        consumed = gateway.fetch_keys(user_id)
    except KeyBundleNotFoundError as exc:
        logger.warning("Key bundle requested for unknown user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No key material for this user",
        ) from exc
    except OneTimeKeysExhaustedError as exc:
        logger.warning("One-time keys depleted for %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="One-time keys depleted",
        ) from exc

    return KeyBundleResponse(
        identity_key=consumed.identity_key,
        signed_pre_key=consumed.signed_pre_key,
        one_time_key=OneTimePreKeyOut(
            id=consumed.one_time_key.key_id,
            public_key=consumed.one_time_key.public_key,
        ),
    )
