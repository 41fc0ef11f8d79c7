"""Base alert repository interface for FolioAlerts."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

from folioalerts.models import Alert, TriggerEvent


class AlertRepository(ABC):
    """Abstract base class for durable alert storage.

    Implementations must make every method a single atomic step per alert
    ID, so that a scheduler stopped between calls never leaves an alert
    half-updated.
    """

    @abstractmethod
    def ping(self) -> None:
        """Verify the repository is reachable.

        Raises:
            RepositoryUnavailable: If the backing store cannot be used.
        """
        pass

    @abstractmethod
    def create(self, alert: Alert) -> Alert:
        """Persist a new alert.

        Args:
            alert: Alert to store. Its ``id`` is ignored.

        Returns:
            The stored alert with its assigned ID.

        Raises:
            ValidationError: If the alert is already triggered.
        """
        pass

    @abstractmethod
    def get(self, alert_id: int) -> Optional[Alert]:
        """Get an alert by ID.

        Returns:
            Alert if found, None otherwise.
        """
        pass

    @abstractmethod
    def list_all(self) -> list[Alert]:
        """Get all alerts, newest first."""
        pass

    @abstractmethod
    def list_by_symbol(self, symbol: str) -> list[Alert]:
        """Get all alerts watching a symbol."""
        pass

    @abstractmethod
    def list_due(self, now: datetime) -> list[Alert]:
        """Get untriggered alerts whose recurrence policy allows a check at ``now``."""
        pass

    @abstractmethod
    def update(self, alert_id: int, patch: dict[str, Any]) -> Alert:
        """Apply a partial update to an alert.

        Args:
            alert_id: Alert ID.
            patch: Field values to change. ``id`` and ``created_at`` are immutable.

        Returns:
            The updated alert.

        Raises:
            AlertNotFound: If the alert does not exist.
            ValidationError: If the result would violate an alert invariant.
        """
        pass

    @abstractmethod
    def mark_triggered(self, alert_id: int, triggered_at: datetime) -> bool:
        """Atomically move an untriggered alert to the triggered state.

        Sets ``triggered``, ``triggered_at`` and ``last_checked`` together.

        Returns:
            True if this call triggered the alert, False if it was already
            triggered.

        Raises:
            AlertNotFound: If the alert does not exist.
        """
        pass

    @abstractmethod
    def reset(self, alert_id: int) -> Alert:
        """Return a triggered alert to the active state.

        Raises:
            AlertNotFound: If the alert does not exist.
        """
        pass

    @abstractmethod
    def delete(self, alert_id: int) -> None:
        """Delete an alert and its trigger history."""
        pass

    @abstractmethod
    def record_trigger(self, event: TriggerEvent) -> int:
        """Append an entry to the trigger history.

        Returns:
            The ID of the stored event.
        """
        pass

    @abstractmethod
    def get_triggers(self, limit: Optional[int] = None) -> list[TriggerEvent]:
        """Get trigger history, most recent first."""
        pass
