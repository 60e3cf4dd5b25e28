"""Envelopes exchanged over the persistent relay channel.

Every frame is a JSON object with a ``type`` discriminator. Clients send
``register`` and ``signal``; the server sends ``offline-message``,
``new-message`` and ``signal``.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .common import UserIdField


class RegisterEnvelope(BaseModel):
    """Bind the sending connection to ``userId``."""

    type: Literal["register"]
    user_id: UserIdField = Field(..., alias="userId")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SignalEnvelope(BaseModel):
    """Forward an opaque signaling payload to a live peer."""

    type: Literal["signal"]
    to: UserIdField
    signal: Any = None

    model_config = ConfigDict(extra="ignore")


class _Outbound(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class SignalMessage(_Outbound):
    type: Literal["signal"] = "signal"
    sender: str = Field(..., alias="from")
    signal: Any = None


class OfflineMessage(_Outbound):
    type: Literal["offline-message"] = "offline-message"
    sender: str = Field(..., alias="from")
    wire_message: Any = Field(..., alias="wireMessage")


class NewMessage(_Outbound):
    type: Literal["new-message"] = "new-message"
    sender: str = Field(..., alias="from")
    wire_message: Any = Field(..., alias="wireMessage")
