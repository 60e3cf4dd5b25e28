"""Business logic services for the relay."""

from .container import RelayServices, build_relay_services
from .delivery import DeliveryGateway, DeliveryOutcome
from .mailbox import Mailbox, MailboxEntry
from .prekeys import ConsumedBundle, KeyBundle, OneTimePreKey, PreKeyStore
from .presence import PresenceRegistry
from .relay import RelayRouter, RelaySession

__all__ = [
    "RelayServices",
    "build_relay_services",
    "DeliveryGateway",
    "DeliveryOutcome",
    "Mailbox",
    "MailboxEntry",
    "ConsumedBundle",
    "KeyBundle",
    "OneTimePreKey",
    "PreKeyStore",
    "PresenceRegistry",
    "RelayRouter",
    "RelaySession",
]
