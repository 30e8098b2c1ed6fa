"""User-facing notifications emitted by lifecycle operations.

The lifecycle service reports what it did (or why it did nothing) through
a :class:`NotificationSink`. The CLI collects them for display; the
watcher logs them.
"""

from __future__ import annotations

import threading
from enum import StrEnum
from typing import Protocol

import structlog
from pydantic import BaseModel


class Severity(StrEnum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class Notification(BaseModel):
    """A human-readable outcome message."""

    model_config = {"frozen": True}

    severity: Severity
    message: str
    code: str = ""
    path: str = ""


class NotificationSink(Protocol):
    def emit(self, notification: Notification) -> None: ...


class CollectingSink:
    """Keeps every notification in memory, in emission order."""

    def __init__(self) -> None:
        self._items: list[Notification] = []
        self._mutex = threading.Lock()

    def emit(self, notification: Notification) -> None:
        with self._mutex:
            self._items.append(notification)

    @property
    def notifications(self) -> list[Notification]:
        with self._mutex:
            return list(self._items)

    def drain(self) -> list[Notification]:
        """Return and forget everything collected so far."""
        with self._mutex:
            items, self._items = self._items, []
        return items

    def codes(self) -> list[str]:
        return [n.code for n in self.notifications]


_LEVELS: dict[Severity, str] = {
    Severity.INFO: "info",
    Severity.WARN: "warning",
    Severity.ERROR: "error",
}


class LoggingSink:
    """Routes notifications to structlog at a matching level."""

    def __init__(self, logger_name: str = "recurctl.notify") -> None:
        self._log = structlog.get_logger(logger_name)

    def emit(self, notification: Notification) -> None:
        method = getattr(self._log, _LEVELS[notification.severity])
        method(notification.message, code=notification.code, path=notification.path)
