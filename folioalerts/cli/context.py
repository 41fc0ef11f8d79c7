"""Shared helpers for CLI commands."""

import click
from rich.console import Console
from rich.panel import Panel

from folioalerts.config import Settings, load_settings
from folioalerts.db.store import AlertStore


def get_settings() -> Settings:
    """Get settings loaded by the root command, or load them directly."""
    ctx = click.get_current_context(silent=True)
    if ctx is not None:
        obj = ctx.find_root().obj
        if isinstance(obj, dict) and "settings" in obj:
            return obj["settings"]
    return load_settings()


def get_store() -> AlertStore:
    """Get the alert store instance."""
    return AlertStore(get_settings().store.db_path)


def print_error(console: Console, message: str, error: Exception) -> None:
    """Print an error panel and exit with status 1."""
    console.print(Panel(
        f"[red]{message}[/red]\n\n{error}",
        title="[bold red]Error[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)
