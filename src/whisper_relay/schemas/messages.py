"""Message submission schemas."""

from pydantic import BaseModel, ConfigDict, Field

from .common import OpaqueField, UserIdField


class SendMessageRequest(BaseModel):
    """Schema for submitting a message to a possibly offline recipient."""

    to: UserIdField = Field(..., description="Recipient user id")
    sender: UserIdField = Field(..., alias="from", description="Sender user id")
    wire_message: OpaqueField = Field(
        ..., alias="wireMessage", description="Opaque encrypted payload"
    )

    model_config = ConfigDict(populate_by_name=True)


class SuccessResponse(BaseModel):
    """Acknowledgement returned once a request has been routed or stored."""

    success: bool = True
