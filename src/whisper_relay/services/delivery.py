"""Request/response surface for message submission and key bundles."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from whisper_relay.core.errors import ConnectionClosedError, InvalidRequestError
from whisper_relay.schemas.common import is_blank
from whisper_relay.schemas.relay import NewMessage
from whisper_relay.services.mailbox import Mailbox, MailboxEntry
from whisper_relay.services.prekeys import ConsumedBundle, KeyBundle, OneTimePreKey, PreKeyStore
from whisper_relay.services.presence import PresenceRegistry

# Configure logger for this module
logger = logging.getLogger(__name__)


class DeliveryOutcome(Enum):
    """How a submitted message was routed."""

    DELIVERED = "delivered"
    QUEUED = "queued"


def _missing(fields: Mapping[str, Any]) -> list[str]:
    return [name for name, value in fields.items() if is_blank(value)]


class DeliveryGateway:
    """Route submitted messages and broker prekey bundles.

    Delivery is fire-and-forget: a message is either pushed to the
    recipient's live connection or stored in its mailbox, and the caller only
    learns which of the two happened.
    """

    def __init__(
        self,
        presence: PresenceRegistry,
        mailbox: Mailbox,
        prekeys: PreKeyStore,
    ) -> None:
        self._presence = presence
        self._mailbox = mailbox
        self._prekeys = prekeys

    async def submit_message(self, to: str, sender: str, wire_message: Any) -> DeliveryOutcome:
        """Deliver ``wire_message`` live or queue it for ``to``.

        Raises:
            InvalidRequestError: Any of the three fields is absent.
        """
        missing = _missing({"to": to, "from": sender, "wireMessage": wire_message})
        if missing:
            raise InvalidRequestError(missing)

        recipient = self._presence.lookup(to)
        if recipient is not None and recipient.is_open:
            message = NewMessage(sender=sender, wire_message=wire_message)
            try:
                await recipient.send_json(message.to_payload())
            except ConnectionClosedError as exc:
                logger.warning("Live delivery to %s failed, queueing instead: %s", to, exc)
            else:
                logger.debug("Delivered message from %s to %s", sender, to)
                return DeliveryOutcome.DELIVERED

        depth = self._mailbox.enqueue(to, MailboxEntry(sender=sender, wire_message=wire_message))
        logger.info("Queued message from %s for offline user %s (%d pending)", sender, to, depth)
        return DeliveryOutcome.QUEUED

    def upload_keys(
        self,
        user_id: str,
        identity_key: Any,
        signed_pre_key: Any,
        one_time_pre_keys: Iterable[OneTimePreKey] | None,
    ) -> int:
        """Replace ``user_id``'s bundle and return the size of its one-time pool.

        Raises:
            InvalidRequestError: Any of the four fields is absent.
        """
        missing = _missing(
            {
                "userId": user_id,
                "identityKey": identity_key,
                "signedPreKey": signed_pre_key,
                "oneTimePreKeys": one_time_pre_keys,
            }
        )
        if missing:
            raise InvalidRequestError(missing)

        bundle = KeyBundle.build(identity_key, signed_pre_key, one_time_pre_keys)
        self._prekeys.upload(user_id, bundle)
        return len(bundle.one_time_pre_keys)

    def fetch_keys(self, user_id: str) -> ConsumedBundle:
        """Consume one one-time key from ``user_id``'s bundle.

        Raises:
            KeyBundleNotFoundError: ``user_id`` never uploaded a bundle.
            OneTimeKeysExhaustedError: The bundle has no one-time keys left.
        """
        return self._prekeys.fetch_and_consume_one(user_id)
