"""
Notification Queue

Single-slot transient feed of outcome messages for the presentation
layer. A new notification replaces the current one; it expires after a
fixed time-to-live or on dismissal.

Expiry is evaluated lazily against a monotonic clock, so no timer task
is needed and tests can drive time with a fake clock.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from backoffice.core.config import get_settings
from backoffice.models import Severity

logger = logging.getLogger(__name__)

Listener = Callable[["Notification"], None]


@dataclass(frozen=True)
class Notification:
    """
    One outcome message.

    Attributes:
        message: Human-readable text
        severity: success or error
        expires_at: Clock reading after which the notification is gone
    """
    message: str
    severity: Severity
    expires_at: float


class NotificationQueue:
    """
    Holds at most one active notification.

    Example:
        >>> queue = NotificationQueue()
        >>> queue.notify("Category saved successfully", Severity.SUCCESS)
        >>> queue.current.message
        'Category saved successfully'
    """

    def __init__(
        self,
        ttl: Optional[float] = None,
        history_size: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = get_settings()
        self.ttl = ttl if ttl is not None else settings.notification_ttl_seconds
        self._clock = clock
        self._current: Optional[Notification] = None
        self._history: deque[Notification] = deque(
            maxlen=history_size or settings.notification_history_size
        )
        self._listeners: list[Listener] = []

    def notify(self, message: str, severity: Severity) -> Notification:
        """Replace whatever is displayed and restart the expiry timer."""
        notification = Notification(
            message=message,
            severity=Severity(severity),
            expires_at=self._clock() + self.ttl,
        )
        self._current = notification
        self._history.append(notification)

        log = logger.info if notification.severity is Severity.SUCCESS else logger.warning
        log(f"Notify [{notification.severity.value}]: {message}")

        for listener in list(self._listeners):
            listener(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.notify(message, Severity.SUCCESS)

    def error(self, message: str) -> Notification:
        return self.notify(message, Severity.ERROR)

    def dismiss(self) -> None:
        self._current = None

    @property
    def current(self) -> Optional[Notification]:
        """Active notification, or None once dismissed or expired."""
        if self._current is not None and self._clock() >= self._current.expires_at:
            self._current = None
        return self._current

    @property
    def history(self) -> list[Notification]:
        """Every notification emitted, oldest first (bounded)."""
        return list(self._history)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` on every notify. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
