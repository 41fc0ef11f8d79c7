"""Shared fixtures for FolioAlerts tests."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from folioalerts.db.store import AlertStore
from folioalerts.models import Alert, MetricSnapshot, Notification
from folioalerts.notify.base import BaseNotifier

T0 = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def price_alert(**overrides) -> Alert:
    """Build a BTC 'price above 50000' alert created at T0."""
    fields = {
        "symbol": "BTC",
        "asset_type": "crypto",
        "alert_type": "price",
        "target_price": 50000.0,
        "condition": "above",
        "created_at": T0,
    }
    fields.update(overrides)
    return Alert(**fields)


def percentage_alert(**overrides) -> Alert:
    """Build an ETH '10% loss from 100' alert created at T0."""
    fields = {
        "symbol": "ETH",
        "asset_type": "crypto",
        "alert_type": "percentage",
        "percentage_change": 10.0,
        "percentage_condition": "loss",
        "base_price": 100.0,
        "created_at": T0,
    }
    fields.update(overrides)
    return Alert(**fields)


def multi_alert(conditions, operator="AND", **overrides) -> Alert:
    """Build a multi-condition BTC alert created at T0."""
    fields = {
        "symbol": "BTC",
        "asset_type": "crypto",
        "alert_type": "multi",
        "conditions": conditions,
        "condition_operator": operator,
        "created_at": T0,
    }
    fields.update(overrides)
    return Alert(**fields)


def snapshot(symbol="BTC", **values) -> MetricSnapshot:
    return MetricSnapshot(symbol=symbol, taken_at=T0, **values)


class RecordingNotifier(BaseNotifier):
    """Notifier that keeps every notification it receives."""

    def __init__(self):
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)


class FailingNotifier(BaseNotifier):
    """Notifier whose delivery always fails."""

    def __init__(self):
        self.attempts = 0

    def notify(self, notification: Notification) -> None:
        self.attempts += 1
        raise ConnectionError("smtp unreachable")


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store(temp_dir: Path) -> AlertStore:
    """Create a fresh alert store."""
    return AlertStore(temp_dir / "test.db")
