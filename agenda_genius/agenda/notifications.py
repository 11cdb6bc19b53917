"""
Notifications - transient toasts for generation, edit and chat outcomes.

Entries expire after a fixed interval; reading the queue prunes them.
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Any, List, Optional

from agenda_genius.config import get_settings

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass
class Notification:
    """A dismissable message for the user."""
    message: str
    kind: NotificationKind = NotificationKind.INFO
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    created_at: float = field(default_factory=time.time)
    expires_at: Optional[float] = None

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message,
            "type": self.kind.value,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
        }


class NotificationCenter:
    """
    Auto-dismissing notification queue.

    Features:
    - Fixed time-to-live per notification
    - Manual dismissal by id
    - Bounded history so a stuck client can't grow it forever
    """

    MAX_ACTIVE = 50

    def __init__(self, ttl_s: float = 4.0, clock: Callable[[], float] = time.time):
        self.ttl_s = ttl_s
        self._clock = clock
        self._queue: List[Notification] = []

    def push(self, message: str, kind: NotificationKind = NotificationKind.INFO) -> Notification:
        now = self._clock()
        notification = Notification(
            message=message,
            kind=NotificationKind(kind),
            created_at=now,
            expires_at=now + self.ttl_s,
        )
        self._queue.append(notification)
        if len(self._queue) > self.MAX_ACTIVE:
            self._queue = self._queue[-self.MAX_ACTIVE:]

        if notification.kind == NotificationKind.ERROR:
            logger.warning(f"Notify error: {message}")
        else:
            logger.debug(f"Notify {notification.kind.value}: {message}")
        return notification

    def success(self, message: str) -> Notification:
        return self.push(message, NotificationKind.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.push(message, NotificationKind.ERROR)

    def info(self, message: str) -> Notification:
        return self.push(message, NotificationKind.INFO)

    def active(self) -> List[Notification]:
        """Unexpired notifications, oldest first."""
        now = self._clock()
        self._queue = [n for n in self._queue if not n.is_expired(now)]
        return list(self._queue)

    def dismiss(self, notification_id: str) -> bool:
        before = len(self._queue)
        self._queue = [n for n in self._queue if n.id != notification_id]
        return len(self._queue) < before

    def clear(self):
        self._queue.clear()


# Singleton instance
_notification_center: Optional[NotificationCenter] = None


def get_notification_center() -> NotificationCenter:
    """Get the global notification center instance."""
    global _notification_center
    if _notification_center is None:
        _notification_center = NotificationCenter(ttl_s=get_settings().notification_ttl_s)
    return _notification_center
