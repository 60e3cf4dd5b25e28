"""
Pydantic schemas for HTTP bodies and relay envelopes.

These schemas define the wire shape of every payload the service accepts or emits.
"""

from .keys import KeyBundleResponse, KeyUploadRequest, OneTimePreKeyIn
from .messages import SendMessageRequest, SuccessResponse
from .relay import (
    NewMessage,
    OfflineMessage,
    RegisterEnvelope,
    SignalEnvelope,
    SignalMessage,
)

__all__ = [
    "KeyBundleResponse", "KeyUploadRequest", "OneTimePreKeyIn",
    "SendMessageRequest", "SuccessResponse",
    "NewMessage", "OfflineMessage", "RegisterEnvelope", "SignalEnvelope", "SignalMessage",
]
