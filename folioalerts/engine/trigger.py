"""Trigger sink: commits triggers and forwards notifications."""

import logging
from datetime import datetime
from typing import Optional

from folioalerts.db.base import AlertRepository
from folioalerts.engine.rules import describe_alert
from folioalerts.errors import RepositoryError
from folioalerts.models import Alert, Notification, TriggerEvent, as_utc
from folioalerts.notify.base import BaseNotifier

logger = logging.getLogger(__name__)


class TriggerSink:
    """Records alert triggers and hands them to a notifier.

    The trigger is committed before the notifier is called, so a delivery
    failure never rolls it back. Every trigger is appended to the trigger
    history together with its delivery outcome.
    """

    def __init__(
        self,
        repository: AlertRepository,
        notifier: Optional[BaseNotifier] = None,
    ):
        """Initialize the trigger sink.

        Args:
            repository: Alert repository to commit triggers to.
            notifier: Notification collaborator; None records triggers only.
        """
        self._repository = repository
        self._notifier = notifier

    def fire(self, alert: Alert, evaluation_time: datetime) -> bool:
        """Trigger an alert.

        Args:
            alert: Alert whose rule was satisfied.
            evaluation_time: Time of the satisfying evaluation.

        Returns:
            True if this call triggered the alert, False if it was already
            triggered (nothing is notified in that case).

        Raises:
            RepositoryError: If the trigger could not be committed.
        """
        triggered_at = as_utc(evaluation_time)
        if not self._repository.mark_triggered(alert.id, triggered_at):
            logger.info("Alert %s already triggered; not firing again", alert.id)
            return False

        notification = Notification(
            alert_id=alert.id,
            symbol=alert.symbol,
            alert_type=alert.alert_type,
            description=describe_alert(alert),
            triggered_at=triggered_at,
        )
        logger.info("Alert %s triggered: %s", alert.id, notification.description)

        delivered, error = self._deliver(notification)
        try:
            self._repository.record_trigger(
                TriggerEvent(
                    alert_id=alert.id,
                    symbol=alert.symbol,
                    alert_type=alert.alert_type,
                    description=notification.description,
                    triggered_at=triggered_at,
                    delivered=delivered,
                    error=error,
                )
            )
            if delivered:
                self._repository.update(alert.id, {"notification_sent": True})
        except RepositoryError:
            logger.exception("Failed to record trigger history for alert %s", alert.id)

        return True

    def _deliver(self, notification: Notification) -> tuple[bool, Optional[str]]:
        """Send a notification, reporting failure instead of raising."""
        if self._notifier is None:
            return False, "no notifier configured"

        try:
            self._notifier.notify(notification)
        except Exception as exc:
            logger.exception(
                "Notification for alert %s failed", notification.alert_id
            )
            return False, str(exc) or type(exc).__name__
        return True, None
