"""Tests for the recurrence policy.

**Feature: folioalerts**
"""

from datetime import timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from folioalerts.engine.recurrence import RECURRENCE_INTERVALS, is_due, next_check_at

from conftest import T0, price_alert

offsets = st.integers(min_value=0, max_value=60 * 24 * 30)


class TestOnceRecurrence:
    """
    **Feature: folioalerts, Property 8: Once Alerts Every Tick**

    *For any* untriggered once alert, every tick at or after creation is due.
    """

    @given(minutes=offsets)
    @settings(max_examples=50)
    def test_always_due(self, minutes: int):
        alert = price_alert(last_checked=T0)
        assert is_due(alert, T0 + timedelta(minutes=minutes)) is True

    def test_no_next_check(self):
        assert next_check_at(price_alert(last_checked=T0)) is None


class TestRecurringGate:
    """
    **Feature: folioalerts, Property 9: Recurrence Gate**

    *For any* daily or weekly alert checked at T, the next evaluation is
    allowed no earlier than T + 24h or T + 168h.
    """

    @pytest.mark.parametrize("recurring,hours", [("daily", 24), ("weekly", 168)])
    def test_gate_boundary(self, recurring: str, hours: int):
        alert = price_alert(recurring=recurring, last_checked=T0)
        gate = T0 + timedelta(hours=hours)

        assert next_check_at(alert) == gate
        assert is_due(alert, gate - timedelta(seconds=1)) is False
        assert is_due(alert, gate) is True
        assert is_due(alert, gate + timedelta(minutes=5)) is True

    @pytest.mark.parametrize("recurring,hours", [("daily", 24), ("weekly", 168)])
    def test_never_checked_gated_from_creation(self, recurring: str, hours: int):
        alert = price_alert(recurring=recurring)
        gate = T0 + timedelta(hours=hours)

        assert next_check_at(alert) == gate
        assert is_due(alert, T0) is False
        assert is_due(alert, T0 + timedelta(minutes=1)) is False
        assert is_due(alert, gate - timedelta(seconds=1)) is False
        assert is_due(alert, gate) is True

    @given(
        recurring=st.sampled_from(["daily", "weekly"]),
        minutes=offsets,
    )
    @settings(max_examples=100)
    def test_never_checked_due_iff_interval_since_creation(self, recurring: str, minutes: int):
        alert = price_alert(recurring=recurring)
        now = T0 + timedelta(minutes=minutes)
        expected = now - T0 >= RECURRENCE_INTERVALS[recurring]
        assert is_due(alert, now) is expected

    @given(
        recurring=st.sampled_from(["daily", "weekly"]),
        minutes=offsets,
    )
    @settings(max_examples=100)
    def test_due_iff_interval_elapsed(self, recurring: str, minutes: int):
        alert = price_alert(recurring=recurring, last_checked=T0)
        now = T0 + timedelta(minutes=minutes)
        expected = now - T0 >= RECURRENCE_INTERVALS[recurring]
        assert is_due(alert, now) is expected


class TestTerminalState:
    """
    **Feature: folioalerts, Property 10: Triggered Is Terminal**

    *For any* triggered alert, it is never due, whatever its recurrence.
    """

    @given(
        recurring=st.sampled_from(["once", "daily", "weekly"]),
        minutes=offsets,
    )
    @settings(max_examples=100)
    def test_triggered_never_due(self, recurring: str, minutes: int):
        alert = price_alert(
            recurring=recurring,
            triggered=True,
            triggered_at=T0,
            last_checked=T0,
        )
        assert is_due(alert, T0 + timedelta(minutes=minutes)) is False

    def test_not_due_before_creation(self):
        alert = price_alert()
        assert is_due(alert, T0 - timedelta(seconds=1)) is False

    def test_naive_now_treated_as_utc(self):
        alert = price_alert(recurring="daily", last_checked=T0)
        naive = (T0 + timedelta(hours=24)).replace(tzinfo=None)
        assert is_due(alert, naive) is True
