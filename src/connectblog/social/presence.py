"""Presence map: which live connection receives a user's pushes.

One connection per user and one user per connection; the most recent
registration wins on both sides. The map lives
in process memory only and is empty after a restart, which only affects
best-effort live delivery.
"""

from __future__ import annotations

import threading


class PresenceMap:
    """In-memory user id → connection id registry."""

    def __init__(self) -> None:
        self._by_user: dict[int, str] = {}
        self._lock = threading.Lock()

    def register(self, user_id: int, connection_id: str) -> None:
        """Point ``user_id`` at ``connection_id``, replacing any earlier connection.

        A user previously registered on the same connection is dropped.
        """
        with self._lock:
            for other, current in list(self._by_user.items()):
                if current == connection_id and other != user_id:
                    del self._by_user[other]
            self._by_user[user_id] = connection_id

    def unregister(self, connection_id: str) -> int | None:
        """Drop the user currently mapped to exactly this connection.

        A stale disconnect (the user has since re-registered elsewhere) matches
        nothing and is a no-op. Returns the user id that was removed, if any.
        """
        with self._lock:
            for user_id, current in self._by_user.items():
                if current == connection_id:
                    del self._by_user[user_id]
                    return user_id
        return None

    def resolve(self, user_id: int) -> str | None:
        with self._lock:
            return self._by_user.get(user_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_user)
