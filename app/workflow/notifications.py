"""
==============================================================================
Notifications Module
==============================================================================

Transient user feedback (message + severity) with explicit dismiss and
time-based auto-dismiss.

Notifications are immutable values; the queue only appends and removes.

==============================================================================
"""

from __future__ import annotations

import enum
import itertools
import time
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional


class Severity(str, enum.Enum):
    """Notification severity."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Notification:
    """One piece of user-facing feedback."""

    id: int
    message: str
    severity: Severity
    created_at: float

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


class NotificationQueue:
    """
    Queue of pending notifications for one session.

    Example:
        >>> queue = NotificationQueue(ttl_seconds=3)
        >>> note = queue.push("Item scanned!", Severity.SUCCESS)
        >>> queue.dismiss(note.id)
        True
    """

    def __init__(
        self,
        ttl_seconds: float = 3.0,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._ids = itertools.count(1)
        self._items: List[Notification] = []

    def push(self, message: str, severity: Severity = Severity.INFO) -> Notification:
        note = Notification(
            id=next(self._ids),
            message=message,
            severity=Severity(severity),
            created_at=self._clock(),
        )
        self._items.append(note)
        return note

    def success(self, message: str) -> Notification:
        return self.push(message, Severity.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.push(message, Severity.ERROR)

    def info(self, message: str) -> Notification:
        return self.push(message, Severity.INFO)

    def dismiss(self, notification_id: int) -> bool:
        """Remove a notification. Returns False if it was already gone."""
        before = len(self._items)
        self._items = [n for n in self._items if n.id != notification_id]
        return len(self._items) != before

    def pending(self) -> List[Notification]:
        """Notifications not yet dismissed or expired, oldest first."""
        self._expire()
        return list(self._items)

    def latest(self) -> Optional[Notification]:
        pending = self.pending()
        return pending[-1] if pending else None

    def clear(self) -> None:
        self._items.clear()

    def _expire(self) -> None:
        cutoff = self._clock() - self._ttl
        self._items = [n for n in self._items if n.created_at > cutoff]
