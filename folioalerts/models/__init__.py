"""Data models for FolioAlerts."""

from folioalerts.models.alert import (
    PAYLOAD_FIELDS,
    Alert,
    AlertType,
    AssetType,
    Comparator,
    Condition,
    ConditionOperator,
    Metric,
    PercentageCondition,
    Recurrence,
    as_utc,
    utc_now,
    validate_alert,
)
from folioalerts.models.notification import Notification, TriggerEvent
from folioalerts.models.snapshot import MetricSnapshot
from folioalerts.models.watchlist import WatchlistItem

__all__ = [
    "PAYLOAD_FIELDS",
    "Alert",
    "AlertType",
    "AssetType",
    "Comparator",
    "Condition",
    "ConditionOperator",
    "Metric",
    "MetricSnapshot",
    "Notification",
    "PercentageCondition",
    "Recurrence",
    "TriggerEvent",
    "WatchlistItem",
    "as_utc",
    "utc_now",
    "validate_alert",
]
