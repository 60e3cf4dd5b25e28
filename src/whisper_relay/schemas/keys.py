"""Prekey bundle schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .common import OpaqueField, UserIdField


class OneTimePreKeyIn(BaseModel):
    """A one-time prekey as uploaded by its owner."""

    id: int | str = Field(..., description="Key id, unique within the bundle")
    public_key: OpaqueField = Field(..., alias="publicKey")

    model_config = ConfigDict(populate_by_name=True)


class KeyUploadRequest(BaseModel):
    """Schema for publishing a full prekey bundle.

    An empty ``oneTimePreKeys`` list is accepted; fetches then report the pool
    as depleted.
    """

    user_id: UserIdField = Field(..., alias="userId")
    identity_key: OpaqueField = Field(..., alias="identityKey")
    signed_pre_key: OpaqueField = Field(..., alias="signedPreKey")
    one_time_pre_keys: list[OneTimePreKeyIn] = Field(..., alias="oneTimePreKeys")

    model_config = ConfigDict(populate_by_name=True)


class OneTimePreKeyOut(BaseModel):
    id: int | str
    public_key: Any = Field(..., alias="publicKey")

    model_config = ConfigDict(populate_by_name=True)


class KeyBundleResponse(BaseModel):
    """The bundle slice returned to a session initiator."""

    identity_key: Any = Field(..., alias="identityKey")
    signed_pre_key: Any = Field(..., alias="signedPreKey")
    one_time_key: OneTimePreKeyOut = Field(..., alias="oneTimeKey")

    model_config = ConfigDict(populate_by_name=True)
