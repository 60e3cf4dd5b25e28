"""Registry of which user is reachable on which live connection."""

from __future__ import annotations

from threading import Lock

from whisper_relay.services.connection import Connection


class PresenceRegistry:
    """Map each user id to the single connection it last registered on.

    Registration is last-writer-wins: binding a user that is already bound
    replaces the previous reference without closing the old connection.
    """

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._lock = Lock()

    def register(self, user_id: str, connection: Connection) -> None:
        """Bind ``user_id`` to ``connection``, replacing any prior binding."""
        with self._lock:
            self._connections[user_id] = connection

    def lookup(self, user_id: str) -> Connection | None:
        """Return the connection bound to ``user_id`` or None."""
        with self._lock:
            return self._connections.get(user_id)

    def unregister(self, user_id: str, connection: Connection) -> bool:
        """Remove the binding only if it still points at ``connection``.

        Returns True when a binding was removed. A later registration from a
        different connection is left untouched.
        """
        with self._lock:
            if self._connections.get(user_id) is connection:
                del self._connections[user_id]
                return True
            return False

    def is_online(self, user_id: str) -> bool:
        connection = self.lookup(user_id)
        return connection is not None and connection.is_open

    def count(self) -> int:
        with self._lock:
            return len(self._connections)
