"""
Notification port.

Flows report progress and problems to the user through a Notifier. The CLI
uses ConsoleNotifier; a host application can supply its own (e.g. toasts).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

from rich.console import Console

logger = logging.getLogger(__name__)


class NotifyVariant(str, Enum):
    """Severity of a notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@runtime_checkable
class Notifier(Protocol):
    def notify(self, message: str, variant: NotifyVariant) -> None:
        """Show a short message to the user."""
        ...


_STYLES = {
    NotifyVariant.INFO: "blue",
    NotifyVariant.SUCCESS: "green",
    NotifyVariant.WARNING: "yellow",
    NotifyVariant.ERROR: "red",
}


class ConsoleNotifier:
    """Notifier that prints to the terminal with rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def notify(self, message: str, variant: NotifyVariant) -> None:
        style = _STYLES.get(variant, "white")
        self.console.print(message, style=style, markup=False, highlight=False)
        logger.debug("Notified (%s): %s", variant.value, message)
