"""Store-and-forward queues for users that are not currently connected."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Any


@dataclass(frozen=True)
class MailboxEntry:
    """A message submitted while its recipient was offline.

    ``wire_message`` is opaque and never inspected.
    """

    sender: str
    wire_message: Any


class Mailbox:
    """Per-user FIFO queues, unbounded and without expiry."""

    def __init__(self) -> None:
        self._queues: dict[str, list[MailboxEntry]] = {}
        self._lock = Lock()

    def enqueue(self, user_id: str, entry: MailboxEntry) -> int:
        """Append ``entry`` to the user's queue and return the new length."""
        with self._lock:
            queue = self._queues.setdefault(user_id, [])
            queue.append(entry)
            return len(queue)

    def drain_all(self, user_id: str) -> list[MailboxEntry]:
        """Remove and return every queued entry for ``user_id`` in order."""
        with self._lock:
            return self._queues.pop(user_id, [])

    def requeue_front(self, user_id: str, entries: list[MailboxEntry]) -> None:
        """Put undelivered ``entries`` back ahead of anything queued since the drain."""
        if not entries:
            return
        with self._lock:
            self._queues[user_id] = list(entries) + self._queues.get(user_id, [])

    def pending_count(self, user_id: str) -> int:
        with self._lock:
            return len(self._queues.get(user_id, ()))

    def total_pending(self) -> int:
        with self._lock:
            return sum(len(queue) for queue in self._queues.values())
