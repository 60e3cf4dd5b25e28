"""Process-lifetime container for the relay's shared state."""

from __future__ import annotations

from dataclasses import dataclass

from whisper_relay.services.delivery import DeliveryGateway
from whisper_relay.services.mailbox import Mailbox
from whisper_relay.services.prekeys import PreKeyStore
from whisper_relay.services.presence import PresenceRegistry
from whisper_relay.services.relay import RelayRouter


@dataclass(frozen=True)
class RelayServices:
    """The stores and the two surfaces built on top of them.

    One instance lives from application startup to shutdown; nothing in it is
    persisted.
    """

    presence: PresenceRegistry
    mailbox: Mailbox
    prekeys: PreKeyStore
    router: RelayRouter
    gateway: DeliveryGateway

    def stats(self) -> dict[str, int]:
        return {
            "online_users": self.presence.count(),
            "queued_messages": self.mailbox.total_pending(),
            "key_bundles": self.prekeys.count(),
        }


def build_relay_services() -> RelayServices:
    """Create a fresh, empty set of relay services."""
    presence = PresenceRegistry()
    mailbox = Mailbox()
    prekeys = PreKeyStore()
    return RelayServices(
        presence=presence,
        mailbox=mailbox,
        prekeys=prekeys,
        router=RelayRouter(presence, mailbox),
        gateway=DeliveryGateway(presence, mailbox, prekeys),
    )
