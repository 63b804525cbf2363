"""User-facing notification channel.

Services push short messages here (the "toast" of the client). Pushing a
notification never replaces raising an error to the caller.
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

import structlog

logger = structlog.get_logger()

MAX_HISTORY = 50


class NotificationLevel(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str = ""
    level: NotificationLevel = NotificationLevel.INFO
    created_at: datetime = field(default_factory=datetime.utcnow)


NotificationHandler = Callable[[Notification], None]


class Notifier:
    """Fan-out of notifications to registered handlers, with a short history."""

    def __init__(self, max_history: int = MAX_HISTORY) -> None:
        self._handlers: list[NotificationHandler] = []
        self._history: deque[Notification] = deque(maxlen=max_history)

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    def subscribe(self, handler: NotificationHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def notify(
        self,
        title: str,
        description: str = "",
        level: NotificationLevel = NotificationLevel.INFO,
    ) -> Notification:
        notification = Notification(title=title, description=description, level=level)
        self._history.append(notification)
        logger.info(
            "notification_pushed",
            title=title,
            level=level.value,
        )
        for handler in list(self._handlers):
            try:
                handler(notification)
            except Exception:
                # A broken sink must not break the operation that notified.
                logger.exception("notification_handler_failed", title=title)
        return notification

    def success(self, title: str, description: str = "") -> Notification:
        return self.notify(title, description, NotificationLevel.SUCCESS)

    def warning(self, title: str, description: str = "") -> Notification:
        return self.notify(title, description, NotificationLevel.WARNING)

    def error(self, title: str, description: str = "") -> Notification:
        return self.notify(title, description, NotificationLevel.ERROR)
