"""Watchlist management commands for FolioAlerts CLI.

Handles watchlist operations including add, remove and list. Setting a
target price on a watched asset also creates a price alert for it.
"""

from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from folioalerts.cli.context import get_store, print_error
from folioalerts.engine.watchlist import WatchlistBridge
from folioalerts.errors import FolioAlertsError
from folioalerts.models import WatchlistItem

console = Console()


@click.group()
def watch() -> None:
    """Manage watchlists.

    Add, remove, and view assets in your watchlists. An asset added with
    --target also gets a price alert that fires above the target.

    \b
    Examples:
      folioalerts watch add BTC                        # Add to default watchlist
      folioalerts watch add AAPL --type stock --target 200
      folioalerts watch list                           # Show default watchlist
      folioalerts watch remove BTC
    """
    pass


@watch.command("add")
@click.argument("symbol")
@click.option(
    "--type", "asset_type",
    type=click.Choice(["crypto", "stock"]),
    default="crypto",
    show_default=True,
    help="Asset class of the symbol.",
)
@click.option("--target", "target_price", type=float, default=None, help="Target price; creates an alert.")
@click.option("--notes", default=None, help="Free-text notes.")
@click.option(
    "--list", "list_name",
    default="default",
    help="Name of the watchlist to add to (default: 'default').",
)
def add_symbol(
    symbol: str,
    asset_type: str,
    target_price: Optional[float],
    notes: Optional[str],
    list_name: str,
) -> None:
    """Add an asset to a watchlist.

    SYMBOL is the asset ticker to add (e.g., BTC, ETH, AAPL).
    """
    symbol = symbol.upper()

    try:
        item = WatchlistItem(
            symbol=symbol,
            asset_type=asset_type,
            list_name=list_name,
            target_price=target_price,
            notes=notes,
        )
    except ValueError as e:
        print_error(console, "Invalid watchlist entry:", e)

    try:
        store = get_store()

        created_alert = None
        if target_price is not None:
            created_alert = WatchlistBridge(store).on_target_price_set(
                symbol, asset_type, target_price, notes=notes
            )

        store.add_to_watchlist(item)
    except FolioAlertsError as e:
        print_error(console, "Failed to add symbol:", e)

    console.print(f"[green]✓ Added {symbol} to watchlist '{list_name}'[/green]")
    if created_alert is not None:
        console.print(
            f"[green]✓ Price alert {created_alert.id} created: "
            f"{symbol} above ${target_price:,.2f}[/green]"
        )


@watch.command("remove")
@click.argument("symbol")
@click.option(
    "--list", "list_name",
    default="default",
    help="Name of the watchlist to remove from (default: 'default').",
)
def remove_symbol(symbol: str, list_name: str) -> None:
    """Remove an asset from a watchlist.

    Alerts created from its target price are kept; remove them with
    'folioalerts alerts --remove ID'.
    """
    symbol = symbol.upper()

    try:
        removed = get_store().remove_from_watchlist(symbol, list_name)
    except FolioAlertsError as e:
        print_error(console, "Failed to remove symbol:", e)

    if not removed:
        console.print(f"[yellow]{symbol} is not in watchlist '{list_name}'[/yellow]")
        return
    console.print(f"[green]✓ Removed {symbol} from watchlist '{list_name}'[/green]")


@watch.command("list")
@click.option(
    "--list", "list_name",
    default="default",
    help="Name of the watchlist to show (default: 'default').",
)
def show_watchlist(list_name: str) -> None:
    """Show the assets in a watchlist."""
    try:
        items = get_store().get_watchlist(list_name)
    except FolioAlertsError as e:
        print_error(console, "Failed to load watchlist:", e)

    if not items:
        console.print(Panel(
            f"[dim]Watchlist '{list_name}' is empty. Use 'folioalerts watch add SYMBOL' to add one.[/dim]",
            title="[bold]Watchlist[/bold]",
            border_style="dim",
        ))
        return

    table = Table(
        title=f"Watchlist: {list_name}",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Symbol", style="bold")
    table.add_column("Type")
    table.add_column("Target", justify="right")
    table.add_column("Notes", style="dim")

    for item in items:
        target = f"${item.target_price:,.2f}" if item.target_price is not None else "-"
        table.add_row(item.symbol, item.asset_type, target, item.notes or "")

    console.print(table)
