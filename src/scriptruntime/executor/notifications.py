"""Out-of-band notification stream fed by `notify` nodes.

The shell UI subscribes to show toasts; the stream also keeps a bounded history
so late subscribers (or tests) can inspect what was published.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, List, Optional

from ..logging import get_logger

logger = get_logger(__name__)


class NotificationLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "NotificationLevel":
        s = str(raw or "").strip().lower()
        if s in ("warning", "warn"):
            return cls.WARNING
        if s == "error":
            return cls.ERROR
        return cls.INFO


@dataclass(frozen=True)
class Notification:
    title: str
    message: str
    level: NotificationLevel = NotificationLevel.INFO
    script_id: Optional[str] = None
    node_id: Optional[str] = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "message": self.message,
            "level": self.level.value,
            "script_id": self.script_id,
            "node_id": self.node_id,
            "created_at": self.created_at,
        }


Subscriber = Callable[[Notification], None]


class NotificationStream:
    def __init__(self, history_size: int = 100):
        self._subscribers: List[Subscriber] = []
        self._history: Deque[Notification] = deque(maxlen=max(1, int(history_size)))

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, notification: Notification) -> None:
        self._history.append(notification)
        for callback in list(self._subscribers):
            try:
                callback(notification)
            except Exception:
                # A failing UI listener must not abort the script that notified.
                logger.exception(
                    "notification_subscriber_failed",
                    title=notification.title,
                    script_id=notification.script_id,
                )

    @property
    def history(self) -> List[Notification]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
