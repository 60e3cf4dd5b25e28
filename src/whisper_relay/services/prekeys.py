"""Prekey bundle storage with one-time key consumption."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from whisper_relay.core.errors import KeyBundleNotFoundError, OneTimeKeysExhaustedError

# Configure logger for this module
logger = logging.getLogger(__name__)

KeyId = int | str


@dataclass(frozen=True)
class OneTimePreKey:
    """A single-use public key identified within its bundle by ``key_id``."""

    key_id: KeyId
    public_key: Any


@dataclass
class KeyBundle:
    """Key material a user publishes so peers can start sessions offline.

    The one-time pool is keyed by id, so duplicate ids in an upload collapse
    into one entry with the last public key seen.
    """

    identity_key: Any
    signed_pre_key: Any
    one_time_pre_keys: dict[KeyId, Any] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        identity_key: Any,
        signed_pre_key: Any,
        one_time_pre_keys: Iterable[OneTimePreKey],
    ) -> KeyBundle:
        pool = {key.key_id: key.public_key for key in one_time_pre_keys}
        return cls(identity_key=identity_key, signed_pre_key=signed_pre_key, one_time_pre_keys=pool)


@dataclass(frozen=True)
class ConsumedBundle:
    """The slice of a bundle handed to one session initiator."""

    identity_key: Any
    signed_pre_key: Any
    one_time_key: OneTimePreKey


class PreKeyStore:
    """Hold one bundle per user and issue each one-time key at most once."""

    def __init__(self) -> None:
        self._bundles: dict[str, KeyBundle] = {}
        self._lock = Lock()

    def upload(self, user_id: str, bundle: KeyBundle) -> None:
        """Replace the user's bundle wholesale."""
        with self._lock:
            self._bundles[user_id] = bundle
        logger.info(
            "Stored key bundle for %s with %d one-time keys",
            user_id,
            len(bundle.one_time_pre_keys),
        )

    def fetch_and_consume_one(self, user_id: str) -> ConsumedBundle:
        """Pop one one-time key and return it with the durable keys.

        The first available key in insertion order is issued; callers must not
        rely on any ordering.

        Raises:
            KeyBundleNotFoundError: No bundle was uploaded for ``user_id``.
            OneTimeKeysExhaustedError: The bundle's one-time pool is empty.
        """
        with self._lock:
            bundle = self._bundles.get(user_id)
            if bundle is None:
                raise KeyBundleNotFoundError(user_id)
            if not bundle.one_time_pre_keys:
                raise OneTimeKeysExhaustedError(user_id)

            key_id = next(iter(bundle.one_time_pre_keys))
            public_key = bundle.one_time_pre_keys.pop(key_id)
            remaining = len(bundle.one_time_pre_keys)
            consumed = ConsumedBundle(
                identity_key=bundle.identity_key,
                signed_pre_key=bundle.signed_pre_key,
                one_time_key=OneTimePreKey(key_id=key_id, public_key=public_key),
            )

        logger.info("Issued one-time key %s for %s, %d remaining", key_id, user_id, remaining)
        return consumed

    def remaining(self, user_id: str) -> int | None:
        """Return how many one-time keys are left, or None without a bundle."""
        with self._lock:
            bundle = self._bundles.get(user_id)
            return None if bundle is None else len(bundle.one_time_pre_keys)

    def count(self) -> int:
        with self._lock:
            return len(self._bundles)
