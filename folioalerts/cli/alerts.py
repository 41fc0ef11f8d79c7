"""Alert management commands for FolioAlerts CLI.

Handles alert operations including creating, listing, resetting and
removing alerts. Supports price, percentage and multi-condition alerts.
"""

import re
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from folioalerts.cli.context import get_store, print_error
from folioalerts.engine.recurrence import next_check_at
from folioalerts.engine.rules import describe_alert
from folioalerts.errors import AlertNotFound, FolioAlertsError, ValidationError
from folioalerts.models import Alert, Condition, validate_alert

console = Console()


# Condition syntax for multi-condition alerts, e.g. "price > 50000"
CONDITION_PATTERN = re.compile(
    r"^\s*(?P<metric>[a-z_ ]+?)\s*(?P<op>>|<|above|below)\s*(?P<value>[-+]?[\d,]*\.?\d+(?:e[-+]?\d+)?)\s*$",
    re.IGNORECASE,
)

METRIC_ALIASES = {
    "price": "price",
    "volume": "volume",
    "vol": "volume",
    "market_cap": "market_cap",
    "market cap": "market_cap",
    "marketcap": "market_cap",
    "mcap": "market_cap",
}

COMPARATOR_ALIASES = {
    ">": "above",
    "above": "above",
    "<": "below",
    "below": "below",
}

ASSET_TYPE_OPTION = click.option(
    "--type", "asset_type",
    type=click.Choice(["crypto", "stock"]),
    default="crypto",
    show_default=True,
    help="Asset class of the symbol.",
)
RECURRING_OPTION = click.option(
    "--recurring",
    type=click.Choice(["once", "daily", "weekly"]),
    default="once",
    show_default=True,
    help="Check on every tick (once) or at most every 24h/168h.",
)
NOTES_OPTION = click.option("--notes", default=None, help="Free-text notes.")


def parse_condition(text: str) -> Condition:
    """Parse a condition string into a Condition.

    Args:
        text: Condition such as ``price > 50000`` or ``volume above 1e9``.

    Returns:
        The parsed condition.

    Raises:
        ValidationError: If the text is not a supported condition.
    """
    match = CONDITION_PATTERN.match(text)
    if match is None:
        raise ValidationError(f"Invalid condition: {text!r}")

    metric = METRIC_ALIASES.get(match.group("metric").strip().lower())
    if metric is None:
        raise ValidationError(f"Unknown metric in condition: {text!r}")

    comparator = COMPARATOR_ALIASES[match.group("op").lower()]
    threshold = float(match.group("value").replace(",", ""))
    return Condition(metric=metric, comparator=comparator, threshold=threshold)


def _save_alert(data: dict) -> None:
    """Validate, store and display a new alert."""
    try:
        new_alert = validate_alert(data)
    except ValidationError as e:
        print_error(console, "Invalid alert:", e)

    try:
        store = get_store()
        created = store.create(new_alert)
    except FolioAlertsError as e:
        print_error(console, "Failed to create alert:", e)

    console.print(Panel(
        f"[bold green]Alert Created[/bold green]\n\n"
        f"ID:        {created.id}\n"
        f"Symbol:    {created.symbol} ({created.asset_type})\n"
        f"Rule:      {describe_alert(created)}\n"
        f"Recurring: {created.recurring}",
        title="[bold]New Alert[/bold]",
        border_style="green",
    ))


@click.group("alert")
def alert() -> None:
    """Create an alert.

    \b
    Examples:
      folioalerts alert price BTC above 50000
      folioalerts alert percent ETH loss 10 --base 3000
      folioalerts alert multi BTC -c "price > 50000" -c "volume > 1e9"
    """
    pass


@alert.command("price")
@click.argument("symbol")
@click.argument("condition", type=click.Choice(["above", "below"]))
@click.argument("target_price", type=float)
@ASSET_TYPE_OPTION
@RECURRING_OPTION
@NOTES_OPTION
def create_price_alert(
    symbol: str,
    condition: str,
    target_price: float,
    asset_type: str,
    recurring: str,
    notes: Optional[str],
) -> None:
    """Alert when SYMBOL's price goes above or below TARGET_PRICE.

    \b
    Examples:
      folioalerts alert price BTC above 50000
      folioalerts alert price AAPL below 150 --type stock --recurring daily
    """
    _save_alert({
        "symbol": symbol,
        "asset_type": asset_type,
        "alert_type": "price",
        "target_price": target_price,
        "condition": condition,
        "recurring": recurring,
        "notes": notes,
    })


@alert.command("percent")
@click.argument("symbol")
@click.argument("direction", type=click.Choice(["gain", "loss"]))
@click.argument("percentage", type=float)
@click.option("--base", "base_price", type=float, required=True, help="Reference price.")
@ASSET_TYPE_OPTION
@RECURRING_OPTION
@NOTES_OPTION
def create_percentage_alert(
    symbol: str,
    direction: str,
    percentage: float,
    base_price: float,
    asset_type: str,
    recurring: str,
    notes: Optional[str],
) -> None:
    """Alert when SYMBOL moves PERCENTAGE percent from a base price.

    \b
    Examples:
      folioalerts alert percent ETH loss 10 --base 3000
      folioalerts alert percent TSLA gain 25 --base 200 --type stock
    """
    _save_alert({
        "symbol": symbol,
        "asset_type": asset_type,
        "alert_type": "percentage",
        "percentage_change": percentage,
        "percentage_condition": direction,
        "base_price": base_price,
        "recurring": recurring,
        "notes": notes,
    })


@alert.command("multi")
@click.argument("symbol")
@click.option(
    "-c", "--condition", "conditions",
    multiple=True,
    required=True,
    help='Condition such as "price > 50000" (repeatable).',
)
@click.option(
    "--operator",
    type=click.Choice(["AND", "OR"], case_sensitive=False),
    default="AND",
    show_default=True,
    help="How the conditions are combined.",
)
@ASSET_TYPE_OPTION
@RECURRING_OPTION
@NOTES_OPTION
def create_multi_alert(
    symbol: str,
    conditions: tuple[str, ...],
    operator: str,
    asset_type: str,
    recurring: str,
    notes: Optional[str],
) -> None:
    """Alert on a combination of price, volume and market cap conditions.

    \b
    Supported conditions:
      price > VALUE         volume > VALUE         market_cap > VALUE
      price < VALUE         volume < VALUE         market_cap < VALUE
    ("above"/"below" may be used instead of ">"/"<")

    \b
    Examples:
      folioalerts alert multi BTC -c "price > 50000" -c "volume > 1e9"
      folioalerts alert multi ETH -c "price < 2000" -c "mcap < 2e11" --operator OR
    """
    try:
        parsed = [parse_condition(text) for text in conditions]
    except ValidationError as e:
        print_error(console, "Invalid condition:", e)

    _save_alert({
        "symbol": symbol,
        "asset_type": asset_type,
        "alert_type": "multi",
        "conditions": [c.model_dump() for c in parsed],
        "condition_operator": operator.upper(),
        "recurring": recurring,
        "notes": notes,
    })


def _status_text(item: Alert) -> str:
    if item.triggered:
        return "[yellow]✓ Triggered[/yellow]"
    return "[green]● Active[/green]"


def _next_check_text(item: Alert) -> str:
    if item.triggered:
        return "-"
    due_at = next_check_at(item)
    if due_at is None:
        return "next tick"
    return due_at.strftime("%Y-%m-%d %H:%M")


@click.command("alerts")
@click.option("--symbol", default=None, help="Only show alerts for this symbol.")
@click.option(
    "--remove", "remove_id",
    type=int,
    default=None,
    help="Remove alert with specified ID.",
)
@click.option(
    "--reset", "reset_id",
    type=int,
    default=None,
    help="Re-activate a triggered alert with specified ID.",
)
def list_alerts(
    symbol: Optional[str],
    remove_id: Optional[int],
    reset_id: Optional[int],
) -> None:
    """Display or manage alerts.

    Shows all alerts. Use --remove ID to delete an alert, or --reset ID
    to re-activate a triggered one.

    \b
    Examples:
      folioalerts alerts              # List all alerts
      folioalerts alerts --symbol BTC # Alerts for BTC only
      folioalerts alerts --remove 5   # Remove alert with ID 5
      folioalerts alerts --reset 5    # Re-activate alert 5
    """
    try:
        store = get_store()

        if remove_id is not None:
            existing = store.get(remove_id)
            if existing is None:
                console.print(f"[yellow]Alert with ID {remove_id} not found[/yellow]")
                return

            store.delete(remove_id)
            console.print(
                f"[green]✓ Removed alert {remove_id} ({describe_alert(existing)})[/green]"
            )
            return

        if reset_id is not None:
            try:
                reset = store.reset(reset_id)
            except AlertNotFound:
                console.print(f"[yellow]Alert with ID {reset_id} not found[/yellow]")
                return
            console.print(
                f"[green]✓ Re-activated alert {reset_id} ({describe_alert(reset)})[/green]"
            )
            return

        alerts = store.list_by_symbol(symbol) if symbol else store.list_all()

        if not alerts:
            console.print(Panel(
                "[dim]No alerts set. Use 'folioalerts alert price SYMBOL above PRICE' to create one.[/dim]",
                title="[bold]Alerts[/bold]",
                border_style="dim",
            ))
            return

        table = Table(
            title="Alerts",
            show_header=True,
            header_style="bold cyan",
        )

        table.add_column("ID", style="dim", width=6)
        table.add_column("Symbol", style="bold")
        table.add_column("Type")
        table.add_column("Rule")
        table.add_column("Recurring")
        table.add_column("Next Check", style="dim")
        table.add_column("Created", style="dim")
        table.add_column("Status", justify="center")

        for item in alerts:
            table.add_row(
                str(item.id),
                item.symbol,
                item.alert_type,
                describe_alert(item),
                item.recurring,
                _next_check_text(item),
                item.created_at.strftime("%Y-%m-%d %H:%M"),
                _status_text(item),
            )

        console.print(table)

        stats = store.get_stats()
        if symbol:
            console.print(f"\n[dim]Showing {len(alerts)} alert(s) for {symbol.upper()}[/dim]")
        console.print(
            f"\n[dim]Active: {stats['active']}  Triggered: {stats['triggered']}  "
            f"Total: {stats['total']}  Trigger events: {stats['trigger_events']}[/dim]"
        )
        console.print("[dim]Use 'folioalerts alerts --remove ID' to delete an alert[/dim]")

    except FolioAlertsError as e:
        print_error(console, "Failed to manage alerts:", e)
