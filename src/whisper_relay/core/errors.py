"""Exception hierarchy for relay, mailbox and key-bundle operations."""

from __future__ import annotations


class RelayError(RuntimeError):
    """Base exception raised for relay failures.

    This is the base class for every error the core surfaces to a caller.
    """


class InvalidRequestError(RelayError):
    """Raised when a request lacks one of its required fields.

    No state is mutated when this is raised.
    """

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing required fields: {', '.join(missing)}")


class KeyBundleNotFoundError(RelayError):
    """Raised when no key bundle was ever uploaded for a user."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"No key material for user {user_id!r}")


class OneTimeKeysExhaustedError(RelayError):
    """Raised when a user's bundle exists but its one-time key pool is empty.

    Kept distinct from :class:`KeyBundleNotFoundError` so clients can tell
    "never registered" apart from "temporarily out of keys".
    """

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"One-time keys depleted for user {user_id!r}")


class MalformedEnvelopeError(RelayError):
    """Raised when a relay frame cannot be parsed as a JSON envelope."""


class ConnectionClosedError(RelayError):
    """Raised when a frame cannot be written because the channel went away."""
