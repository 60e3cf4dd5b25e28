# src/whisper_relay/api/endpoints/messages.py
"""Message submission endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from whisper_relay.api.dependencies import DeliveryGatewayDep
from whisper_relay.schemas.messages import SendMessageRequest, SuccessResponse

router = APIRouter(tags=["messages"])


@router.post("/send", response_model=SuccessResponse)
async def send_message(
    message_data: SendMessageRequest,
    gateway: DeliveryGatewayDep,
) -> SuccessResponse:
    """Deliver a message live or store it until the recipient connects.

    The response only confirms the message was routed; it says nothing about
    whether the recipient has read it.
    """
    await gateway.submit_message(
        message_data.to,
        message_data.sender,
        message_data.wire_message,
    )

    return SuccessResponse()
