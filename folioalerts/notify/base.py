"""Base notifier interface for FolioAlerts."""

import logging
from abc import ABC, abstractmethod

from folioalerts.models import Notification


class BaseNotifier(ABC):
    """Abstract base class for trigger notification delivery."""

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        """Deliver a trigger notification.

        Raises:
            Exception: Any delivery failure. The trigger itself is already
                committed when this is called.
        """
        pass


class LogNotifier(BaseNotifier):
    """Notifier that writes trigger notifications to a logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger("folioalerts.notifications")

    def notify(self, notification: Notification) -> None:
        self._logger.warning(
            "ALERT %s (%s): %s at %s",
            notification.symbol,
            notification.alert_type,
            notification.description,
            notification.triggered_at.isoformat(),
        )
