"""Recurrence policy: decides when an alert is due for evaluation."""

from datetime import datetime, timedelta
from typing import Optional

from folioalerts.models import Alert, as_utc

# Minimum time between checks; None means every tick
RECURRENCE_INTERVALS: dict[str, Optional[timedelta]] = {
    "once": None,
    "daily": timedelta(hours=24),
    "weekly": timedelta(hours=168),
}


def next_check_at(alert: Alert) -> Optional[datetime]:
    """Earliest time the alert may be evaluated again.

    Daily and weekly alerts are gated from their last recorded check, or
    from creation if they have never been checked. Returns None for
    ``once`` alerts, which are eligible on every tick.
    """
    interval = RECURRENCE_INTERVALS[alert.recurring]
    if interval is None:
        return None
    anchor = alert.last_checked or alert.created_at
    return anchor + interval


def is_due(alert: Alert, now: datetime) -> bool:
    """Check whether an alert should be evaluated at ``now``.

    Triggered alerts are terminal and never due, whatever their recurrence.
    """
    if alert.triggered:
        return False

    now = as_utc(now)
    if now < alert.created_at:
        return False

    due_at = next_check_at(alert)
    return due_at is None or now >= due_at
