"""Tests for metric feeds and notifiers.

**Feature: folioalerts**
"""

import io
import logging
from datetime import timedelta

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from rich.console import Console

from folioalerts.errors import FeedUnavailable
from folioalerts.feeds import SimulatedFeed, StaticFeed
from folioalerts.models import Notification
from folioalerts.notify import ConsoleNotifier, LogNotifier

from conftest import T0


class TestStaticFeed:
    """Static feed serves the values last set."""

    def test_partial_values(self):
        feed = StaticFeed()
        feed.set("btc", price=50001.0)

        snap = feed.get_snapshot("BTC", "crypto")
        assert snap.symbol == "BTC"
        assert snap.price == 50001.0
        assert snap.volume is None

    def test_set_merges(self):
        feed = StaticFeed()
        feed.set("BTC", price=1.0, volume=5.0)
        feed.set("BTC", price=2.0)

        snap = feed.get_snapshot("BTC", "crypto")
        assert snap.price == 2.0
        assert snap.volume == 5.0

    def test_zero_is_kept(self):
        feed = StaticFeed()
        feed.set("BTC", volume=0.0)
        assert feed.get_snapshot("BTC", "crypto").volume == 0.0

    def test_unknown_symbol(self):
        with pytest.raises(FeedUnavailable):
            StaticFeed().get_snapshot("DOGE", "crypto")

    def test_clear(self):
        feed = StaticFeed()
        feed.set("BTC", price=1.0)
        feed.set("ETH", price=1.0)
        assert feed.symbols() == ["BTC", "ETH"]

        feed.clear("btc")
        assert feed.symbols() == ["ETH"]
        feed.clear()
        assert feed.symbols() == []


class TestSimulatedFeed:
    """
    **Feature: folioalerts, Property 24: Bounded Random Walk**

    *For any* seed, each step stays positive and within the volatility and
    momentum bounds of the previous price.
    """

    @given(seed=st.integers(min_value=0, max_value=2**32 - 1))
    @settings(max_examples=30)
    def test_steps_are_bounded(self, seed: int):
        feed = SimulatedFeed({"BTC": 50000.0}, seed=seed)
        previous = 50000.0
        # Sustained momentum can amplify a 2% step to roughly 5%
        max_step = 0.06

        for _ in range(25):
            price = feed.get_snapshot("BTC", "crypto").price
            assert price > 0
            assert abs(price - previous) / previous <= max_step
            previous = price

    def test_seed_is_reproducible(self):
        first = SimulatedFeed({"ETH": 3000.0}, seed=7)
        second = SimulatedFeed({"ETH": 3000.0}, seed=7)
        for _ in range(5):
            expected = first.get_snapshot("ETH", "crypto").price
            assert second.get_snapshot("ETH", "crypto").price == expected

    def test_volume_and_market_cap(self):
        feed = SimulatedFeed(
            {"BTC": 50000.0},
            volumes={"BTC": 1e9},
            supplies={"BTC": 2e7},
            seed=1,
        )
        snap = feed.get_snapshot("btc", "crypto")
        assert 0.5e9 <= snap.volume <= 1.5e9
        assert snap.market_cap == pytest.approx(snap.price * 2e7)

    def test_optional_metrics_absent(self):
        snap = SimulatedFeed({"BTC": 50000.0}, seed=1).get_snapshot("BTC", "crypto")
        assert snap.volume is None
        assert snap.market_cap is None

    def test_unknown_symbol(self):
        with pytest.raises(FeedUnavailable):
            SimulatedFeed({"BTC": 1.0}).get_snapshot("ETH", "crypto")


def _notification() -> Notification:
    return Notification(
        alert_id=3,
        symbol="BTC",
        alert_type="price",
        description="BTC price above $50,000.00",
        triggered_at=T0 + timedelta(minutes=1),
    )


class TestNotifiers:
    """Built-in notifiers render the trigger description."""

    def test_console_notifier(self):
        buffer = io.StringIO()
        ConsoleNotifier(Console(file=buffer, width=100)).notify(_notification())
        output = buffer.getvalue()
        assert "BTC price above $50,000.00" in output
        assert "#3" in output

    def test_log_notifier(self, caplog):
        with caplog.at_level(logging.WARNING, logger="folioalerts.notifications"):
            LogNotifier().notify(_notification())
        assert "BTC price above $50,000.00" in caplog.text
