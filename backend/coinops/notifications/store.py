from __future__ import annotations

import datetime
import threading

from coinops.schemas.notification import Notification


class NotificationStore:
    """Thread-safe in-memory notification log."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._notifications: list[Notification] = []
        self._next_id = 1

    def add(self, title: str, message: str) -> Notification:
        with self._lock:
            notification = Notification(
                id=self._next_id,
                title=title,
                message=message,
                timestamp=datetime.datetime.now(datetime.UTC),
            )
            self._next_id += 1
            self._notifications.append(notification)
            return notification

    def get_all(self) -> list[Notification]:
        """All notifications, newest first."""
        with self._lock:
            return list(reversed(self._notifications))

    def count(self) -> int:
        with self._lock:
            return len(self._notifications)

    def clear(self) -> None:
        with self._lock:
            self._notifications = []
