"""Message handling for live relay connections.

Each connection moves from unregistered to registered when it sends a
``register`` envelope. Registered connections may push ``signal`` envelopes,
which are forwarded only to peers that are live right now. Signals for absent
peers and unknown envelope types are dropped and logged, never reported back
to the sender.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from whisper_relay.core.errors import ConnectionClosedError, MalformedEnvelopeError
from whisper_relay.schemas.relay import (
    OfflineMessage,
    RegisterEnvelope,
    SignalEnvelope,
    SignalMessage,
)
from whisper_relay.services.connection import Connection
from whisper_relay.services.mailbox import Mailbox
from whisper_relay.services.presence import PresenceRegistry

# Configure logger for this module
logger = logging.getLogger(__name__)


@dataclass
class RelaySession:
    """Per-connection state; ``user_id`` is None until registration."""

    connection: Connection
    user_id: str | None = None

    @property
    def registered(self) -> bool:
        return self.user_id is not None

    @property
    def label(self) -> str:
        return self.user_id or "unknown"


def decode_envelope(raw: str | bytes) -> dict[str, Any]:
    """Parse a relay frame into an envelope mapping.

    Raises:
        MalformedEnvelopeError: The frame is not a JSON object.
    """
    try:
        envelope = json.loads(raw)
    except (TypeError, ValueError, RecursionError) as exc:
        raise MalformedEnvelopeError(f"Frame is not valid JSON: {exc}") from exc
    if not isinstance(envelope, dict):
        raise MalformedEnvelopeError("Frame must be a JSON object")
    return envelope


class RelayRouter:
    """Route relay envelopes between live connections."""

    def __init__(self, presence: PresenceRegistry, mailbox: Mailbox) -> None:
        self._presence = presence
        self._mailbox = mailbox
        self._handlers: dict[str, Callable[[RelaySession, dict[str, Any]], Awaitable[None]]] = {
            "register": self._on_register,
            "signal": self._on_signal,
        }

    def open_session(self, connection: Connection) -> RelaySession:
        return RelaySession(connection=connection)

    async def handle_frame(self, session: RelaySession, raw: str | bytes) -> None:
        """Process one inbound frame.

        Malformed frames and errors raised while handling one frame are
        logged and skipped so the connection keeps serving subsequent messages.
        """
        try:
            envelope = decode_envelope(raw)
            msg_type = envelope.get("type")
            handler = self._handlers.get(msg_type) if isinstance(msg_type, str) else None
            if handler is None:
                logger.warning("Unknown message type from %s: %r", session.label, msg_type)
                return
            await handler(session, envelope)
        except MalformedEnvelopeError as exc:
            logger.warning("Discarding malformed envelope from %s: %s", session.label, exc)
        except (ValueError, TypeError, KeyError, AttributeError, RecursionError) as exc:
            logger.error(
                "Error processing frame from %s: %s", session.label, exc, exc_info=True
            )

    async def register(self, session: RelaySession, user_id: str) -> int:
        """Bind ``user_id`` to the session's connection and flush its mailbox.

        Returns the number of offline messages pushed. A connection carries one
        identity at a time, so re-registering under a new id releases the old one.
        """
        previous = session.user_id
        if previous is not None and previous != user_id:
            self._presence.unregister(previous, session.connection)

        # A send racing this window can be delivered live ahead of the flushed
        # backlog, or land in the mailbox just after the drain.
        self._presence.register(user_id, session.connection)
        session.user_id = user_id
        logger.info("User registered: %s", user_id)

        pending = self._mailbox.drain_all(user_id)
        if not pending:
            return 0

        logger.info("Flushing %d offline messages to %s", len(pending), user_id)
        for index, entry in enumerate(pending):
            message = OfflineMessage(sender=entry.sender, wire_message=entry.wire_message)
            try:
                await session.connection.send_json(message.to_payload())
            except ConnectionClosedError as exc:
                undelivered = pending[index:]
                self._mailbox.requeue_front(user_id, undelivered)
                logger.warning(
                    "Connection for %s closed during flush, requeued %d messages: %s",
                    user_id,
                    len(undelivered),
                    exc,
                )
                return index
        return len(pending)

    async def forward_signal(self, session: RelaySession, to: str, signal: Any) -> bool:
        """Forward ``signal`` to ``to`` if it is live; return whether it was sent."""
        if not session.registered:
            logger.warning("Ignoring signal for %s from an unregistered connection", to)
            return False

        recipient = self._presence.lookup(to)
        if recipient is None or not recipient.is_open:
            logger.warning(
                "Dropping signal from %s: recipient %s is not connected", session.user_id, to
            )
            return False

        message = SignalMessage(sender=session.user_id, signal=signal)
        try:
            await recipient.send_json(message.to_payload())
        except ConnectionClosedError as exc:
            logger.warning("Dropping signal from %s to %s: %s", session.user_id, to, exc)
            return False

        logger.debug("Forwarded signal from %s to %s", session.user_id, to)
        return True

    def close_session(self, session: RelaySession) -> None:
        """Release the session's identity when its connection closes."""
        if session.user_id is None:
            return
        if self._presence.unregister(session.user_id, session.connection):
            logger.info("User disconnected: %s", session.user_id)
        else:
            logger.info("Closed superseded connection for %s", session.user_id)

    async def _on_register(self, session: RelaySession, envelope: dict[str, Any]) -> None:
        try:
            parsed = RegisterEnvelope.model_validate(envelope)
        except ValidationError as exc:
            raise MalformedEnvelopeError(f"Invalid register envelope: {exc}") from exc
        await self.register(session, parsed.user_id)

    async def _on_signal(self, session: RelaySession, envelope: dict[str, Any]) -> None:
        try:
            parsed = SignalEnvelope.model_validate(envelope)
        except ValidationError as exc:
            raise MalformedEnvelopeError(f"Invalid signal envelope: {exc}") from exc
        await self.forward_signal(session, parsed.to, parsed.signal)
