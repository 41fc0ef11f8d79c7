"""Tests for the command line interface.

**Feature: folioalerts**
"""

import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from folioalerts.cli import cli
from folioalerts.cli.alerts import parse_condition
from folioalerts.cli.engine import parse_assignments
from folioalerts.db.store import AlertStore
from folioalerts.errors import ValidationError


@pytest.fixture
def config_path(temp_dir: Path, monkeypatch) -> Path:
    """Config file pointing the CLI at a temporary database."""
    monkeypatch.setattr(sys.modules["folioalerts.cli.main"], "configure_logging", lambda level: None)
    path = temp_dir / "config.toml"
    path.write_text(
        "[store]\n"
        f'db_path = "{(temp_dir / "cli.db").as_posix()}"\n'
        "\n"
        "[simulation]\n"
        "prices = { BTC = 50000 }\n"
    )
    return path


@pytest.fixture
def invoke(config_path: Path):
    runner = CliRunner()

    def _invoke(*args: str):
        return runner.invoke(cli, ["--config", str(config_path), *args])

    return _invoke


@pytest.fixture
def cli_store(temp_dir: Path, config_path: Path) -> AlertStore:
    return AlertStore(temp_dir / "cli.db")


class TestParseCondition:
    """Condition strings for multi-condition alerts."""

    @pytest.mark.parametrize(
        "text,metric,comparator,threshold",
        [
            ("price > 50000", "price", "above", 50000.0),
            ("volume above 1e9", "volume", "above", 1e9),
            ("mcap < 2e11", "market_cap", "below", 2e11),
            ("market cap below 1,000,000", "market_cap", "below", 1e6),
            ("  PRICE<0.5 ", "price", "below", 0.5),
        ],
    )
    def test_valid(self, text: str, metric: str, comparator: str, threshold: float):
        condition = parse_condition(text)
        assert condition.metric == metric
        assert condition.comparator == comparator
        assert condition.threshold == threshold

    @pytest.mark.parametrize("text", ["price >= 5", "rsi > 30", "price", "> 5"])
    def test_invalid(self, text: str):
        with pytest.raises(ValidationError):
            parse_condition(text)


class TestParseAssignments:
    """SYMBOL=VALUE options of the check command."""

    def test_valid(self):
        assert parse_assignments(("btc=50,001", "ETH=1.5e3")) == {
            "BTC": 50001.0,
            "ETH": 1500.0,
        }

    @pytest.mark.parametrize("value", ["BTC", "=5", "BTC=abc"])
    def test_invalid(self, value: str):
        with pytest.raises(ValidationError):
            parse_assignments((value,))


class TestAlertCommands:
    """Creating, listing, resetting and removing alerts."""

    def test_create_price_alert(self, invoke, cli_store):
        result = invoke("alert", "price", "btc", "above", "50000", "--recurring", "daily")

        assert result.exit_code == 0, result.output
        assert "Alert Created" in result.output
        alerts = cli_store.list_all()
        assert len(alerts) == 1
        assert alerts[0].symbol == "BTC"
        assert alerts[0].target_price == 50000.0
        assert alerts[0].recurring == "daily"

    def test_create_percentage_alert(self, invoke, cli_store):
        result = invoke("alert", "percent", "ETH", "loss", "10", "--base", "3000")

        assert result.exit_code == 0, result.output
        created = cli_store.list_all()[0]
        assert created.percentage_condition == "loss"
        assert created.base_price == 3000.0

    def test_create_multi_alert(self, invoke, cli_store):
        result = invoke(
            "alert", "multi", "BTC",
            "-c", "price > 50000",
            "-c", "volume > 1e9",
            "--operator", "or",
        )

        assert result.exit_code == 0, result.output
        created = cli_store.list_all()[0]
        assert created.condition_operator == "OR"
        assert [c.metric for c in created.conditions] == ["price", "volume"]

    def test_invalid_alert_rejected(self, invoke, cli_store):
        result = invoke("alert", "price", "BTC", "above", "0")
        assert result.exit_code == 1
        assert cli_store.list_all() == []

    def test_invalid_condition_rejected(self, invoke, cli_store):
        result = invoke("alert", "multi", "BTC", "-c", "rsi > 30")
        assert result.exit_code == 1
        assert cli_store.list_all() == []

    def test_list_alerts(self, invoke):
        assert invoke("alerts").exit_code == 0
        invoke("alert", "price", "BTC", "above", "50000")

        result = invoke("alerts")

        assert result.exit_code == 0, result.output
        assert "Active: 1" in result.output
        assert "Total: 1" in result.output

    def test_list_summary_counts_whole_store(self, invoke):
        invoke("alert", "price", "BTC", "above", "50000")
        invoke("alert", "price", "ETH", "above", "3000")
        invoke("check", "--price", "BTC=50001")

        result = invoke("alerts", "--symbol", "eth")

        assert result.exit_code == 0, result.output
        assert "Showing 1 alert(s) for ETH" in result.output
        assert "Active: 1  Triggered: 1  Total: 2  Trigger events: 1" in result.output

    def test_reset_and_remove(self, invoke, cli_store):
        invoke("alert", "price", "BTC", "above", "50000")
        alert_id = cli_store.list_all()[0].id
        invoke("check", "--price", "BTC=50001")
        assert cli_store.get(alert_id).triggered is True

        result = invoke("alerts", "--reset", str(alert_id))
        assert result.exit_code == 0, result.output
        assert cli_store.get(alert_id).triggered is False

        result = invoke("alerts", "--remove", str(alert_id))
        assert result.exit_code == 0, result.output
        assert cli_store.get(alert_id) is None

    def test_manage_missing_alert(self, invoke):
        assert "not found" in invoke("alerts", "--remove", "99").output
        assert "not found" in invoke("alerts", "--reset", "99").output


class TestEngineCommands:
    """One-shot checks, scheduler runs and trigger history."""

    def test_check_triggers_alert(self, invoke, cli_store):
        invoke("alert", "price", "BTC", "above", "50000")

        result = invoke("check", "--price", "BTC=49999")
        assert result.exit_code == 0, result.output
        assert cli_store.list_all()[0].triggered is False

        result = invoke("check", "--price", "BTC=50001")
        assert result.exit_code == 0, result.output
        assert cli_store.list_all()[0].triggered is True

        history = invoke("triggers")
        assert history.exit_code == 0, history.output
        assert "BTC" in history.output

    def test_check_invalid_value(self, invoke):
        result = invoke("check", "--price", "BTC=lots")
        assert result.exit_code == 1

    def test_empty_history(self, invoke):
        result = invoke("triggers")
        assert result.exit_code == 0
        assert "No alerts have triggered yet" in result.output

    def test_run_with_tick_limit(self, invoke, cli_store):
        invoke("alert", "price", "BTC", "above", "1")

        result = invoke("run", "--ticks", "1", "--interval", "0.01", "--seed", "3")

        assert result.exit_code == 0, result.output
        assert cli_store.list_all()[0].triggered is True


class TestWatchCommands:
    """Watchlist management and the target price bridge."""

    def test_add_with_target_creates_alert(self, invoke, cli_store):
        result = invoke("watch", "add", "aapl", "--type", "stock", "--target", "200")

        assert result.exit_code == 0, result.output
        assert [i.symbol for i in cli_store.get_watchlist()] == ["AAPL"]
        alerts = cli_store.list_all()
        assert len(alerts) == 1
        assert alerts[0].condition == "above"
        assert alerts[0].target_price == 200.0

    def test_add_without_target(self, invoke, cli_store):
        result = invoke("watch", "add", "BTC")
        assert result.exit_code == 0, result.output
        assert cli_store.list_all() == []

    def test_add_with_invalid_target(self, invoke, cli_store):
        result = invoke("watch", "add", "BTC", "--target", "0")
        assert result.exit_code == 1
        assert cli_store.get_watchlist() == []

    def test_invalid_list_name_creates_nothing(self, invoke, cli_store):
        result = invoke("watch", "add", "BTC", "--target", "100", "--list", "")

        assert result.exit_code == 1
        assert "Invalid watchlist entry" in result.output
        assert cli_store.list_all() == []
        assert cli_store.get_watchlist("") == []

    def test_list_and_remove(self, invoke, cli_store):
        invoke("watch", "add", "BTC", "--list", "majors")

        listed = invoke("watch", "list", "--list", "majors")
        assert listed.exit_code == 0
        assert "BTC" in listed.output

        assert invoke("watch", "remove", "BTC", "--list", "majors").exit_code == 0
        assert cli_store.get_watchlist("majors") == []
        assert "not in watchlist" in invoke("watch", "remove", "BTC").output
