"""User-facing notification and progress ports.

The toolkit only emits; it never reads anything back from these sinks.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Protocol

ProgressCallback = Callable[[str], None]


class NotificationLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notifier(Protocol):
    """Fire-and-forget toast/dialog sink."""

    def notify(self, message: str, *, level: NotificationLevel = NotificationLevel.INFO) -> None:
        """Show ``message`` to the user."""


_LOG_LEVELS = {
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Route notifications into the log."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("repair_toolkit.notifications")

    def notify(self, message: str, *, level: NotificationLevel = NotificationLevel.INFO) -> None:
        self.logger.log(_LOG_LEVELS[level], "%s", message)


class EchoNotifier:
    """Write notifications through an echo callable such as ``click.echo``."""

    def __init__(self, echo: Callable[[str], None], *, prefix: str = "") -> None:
        self.echo = echo
        self.prefix = prefix
        self._lock = threading.Lock()

    def notify(self, message: str, *, level: NotificationLevel = NotificationLevel.INFO) -> None:
        tag = "" if level == NotificationLevel.INFO else f"[{level.value}] "
        with self._lock:
            self.echo(f"{self.prefix}{tag}{message}")
