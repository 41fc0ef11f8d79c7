"""Trigger notifiers for FolioAlerts."""

from folioalerts.notify.base import BaseNotifier, LogNotifier
from folioalerts.notify.console import ConsoleNotifier

__all__ = [
    "BaseNotifier",
    "ConsoleNotifier",
    "LogNotifier",
]
