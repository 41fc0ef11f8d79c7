"""Scheduler commands for FolioAlerts CLI.

Runs alert evaluation either once against explicitly given values, or
continuously against the simulated feed, and shows trigger history.
"""

from datetime import datetime
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from folioalerts.cli.context import get_settings, get_store, print_error
from folioalerts.engine.scheduler import RecurrenceScheduler, TickReport
from folioalerts.engine.trigger import TriggerSink
from folioalerts.errors import FolioAlertsError, ValidationError
from folioalerts.feeds import SimulatedFeed, StaticFeed
from folioalerts.notify import ConsoleNotifier

console = Console()


def parse_assignments(values: tuple[str, ...]) -> dict[str, float]:
    """Parse SYMBOL=VALUE pairs.

    Args:
        values: Strings such as ``BTC=50001`` or ``aapl=1.5e9``.

    Returns:
        Mapping of uppercased symbol to value.

    Raises:
        ValidationError: If a pair is malformed.
    """
    parsed = {}
    for value in values:
        symbol, sep, number = value.partition("=")
        if not sep or not symbol.strip():
            raise ValidationError(f"Expected SYMBOL=VALUE, got {value!r}")
        try:
            parsed[symbol.strip().upper()] = float(number.replace(",", ""))
        except ValueError:
            raise ValidationError(f"Invalid number in {value!r}") from None
    return parsed


def _print_report(report: TickReport) -> None:
    table = Table(
        title=f"Tick {report.started_at.strftime('%Y-%m-%d %H:%M:%S %Z')}",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Due", justify="right")
    table.add_column("Triggered", justify="right", style="yellow")
    table.add_column("Re-armed", justify="right")
    table.add_column("Unchanged", justify="right")
    table.add_column("Deferred", justify="right")
    table.add_column("Failed", justify="right", style="red")
    table.add_row(
        str(report.due),
        str(report.triggered),
        str(report.rechecked),
        str(report.unchanged),
        str(report.deferred),
        str(report.failed),
    )
    console.print(table)


@click.command("check")
@click.option("--price", "prices", multiple=True, help="SYMBOL=PRICE (repeatable).")
@click.option("--volume", "volumes", multiple=True, help="SYMBOL=VOLUME (repeatable).")
@click.option("--mcap", "market_caps", multiple=True, help="SYMBOL=MARKET_CAP (repeatable).")
def check(
    prices: tuple[str, ...],
    volumes: tuple[str, ...],
    market_caps: tuple[str, ...],
) -> None:
    """Evaluate due alerts once against the given values.

    Symbols without any value are skipped and retried on the next check.

    \b
    Examples:
      folioalerts check --price BTC=50001
      folioalerts check --price BTC=51000 --volume BTC=1.1e9
    """
    try:
        price_map = parse_assignments(prices)
        volume_map = parse_assignments(volumes)
        mcap_map = parse_assignments(market_caps)
    except ValidationError as e:
        print_error(console, "Invalid value:", e)

    feed = StaticFeed()
    for symbol in set(price_map) | set(volume_map) | set(mcap_map):
        feed.set(
            symbol,
            price=price_map.get(symbol),
            volume=volume_map.get(symbol),
            market_cap=mcap_map.get(symbol),
        )

    try:
        settings = get_settings()
        store = get_store()
        scheduler = RecurrenceScheduler(
            store,
            feed,
            TriggerSink(store, ConsoleNotifier(console)),
            feed_timeout_seconds=settings.engine.feed_timeout_seconds,
            max_workers=settings.engine.max_workers,
        )
        try:
            report = scheduler.tick()
        finally:
            scheduler.stop()
    except FolioAlertsError as e:
        print_error(console, "Check failed:", e)

    _print_report(report)


@click.command("run")
@click.option("--interval", type=float, default=None, help="Seconds between ticks (default from config).")
@click.option("--ticks", "max_ticks", type=int, default=None, help="Stop after this many ticks.")
@click.option("--seed", type=int, default=None, help="Random seed for the simulated feed.")
def run(interval: Optional[float], max_ticks: Optional[int], seed: Optional[int]) -> None:
    """Run the alert scheduler against the simulated price feed.

    Prices follow a random walk from the [simulation] section of the
    config file. Press Ctrl+C to stop.

    \b
    Examples:
      folioalerts run
      folioalerts run --interval 5 --ticks 10 --seed 42
    """
    try:
        settings = get_settings()
        store = get_store()
        simulation = settings.simulation
        feed = SimulatedFeed(
            simulation.prices,
            volumes=simulation.volumes,
            supplies=simulation.supplies,
            seed=seed if seed is not None else simulation.seed,
        )
        scheduler = RecurrenceScheduler(
            store,
            feed,
            TriggerSink(store, ConsoleNotifier(console)),
            interval_seconds=interval or settings.engine.tick_interval_seconds,
            feed_timeout_seconds=settings.engine.feed_timeout_seconds,
            max_workers=settings.engine.max_workers,
        )
    except (FolioAlertsError, ValueError) as e:
        print_error(console, "Cannot start scheduler:", e)

    console.print(
        f"[bold]Scheduler running[/bold] every {scheduler.interval_seconds:g}s "
        f"[dim](Ctrl+C to stop)[/dim]"
    )
    try:
        scheduler.run_forever(max_ticks=max_ticks)
    except FolioAlertsError as e:
        print_error(console, "Scheduler stopped:", e)
    except KeyboardInterrupt:
        scheduler.stop(wait=False)
        console.print("\n[dim]Scheduler stopped[/dim]")


@click.command("triggers")
@click.option("--limit", type=int, default=20, show_default=True, help="Number of events to show.")
def triggers(limit: int) -> None:
    """Show recent alert triggers."""
    try:
        events = get_store().get_triggers(limit=limit)
    except FolioAlertsError as e:
        print_error(console, "Failed to load trigger history:", e)

    if not events:
        console.print("[dim]No alerts have triggered yet[/dim]")
        return

    table = Table(
        title="Trigger History",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Time", style="dim")
    table.add_column("Alert", justify="right")
    table.add_column("Symbol", style="bold")
    table.add_column("Rule")
    table.add_column("Notified", justify="center")

    for event in events:
        notified = "[green]✓[/green]" if event.delivered else f"[red]✗[/red] {event.error or ''}"
        table.add_row(
            _local_time(event.triggered_at),
            str(event.alert_id),
            event.symbol,
            event.description,
            notified,
        )

    console.print(table)


def _local_time(value: datetime) -> str:
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")
