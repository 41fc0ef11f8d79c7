"""Main CLI entry point for FolioAlerts.

This module provides the main click group and lazy loading
of command modules to keep startup fast.
"""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from folioalerts.config import load_settings
from folioalerts.errors import ValidationError
from folioalerts.log import configure_logging

# Console for rich output
console = Console()


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules are only imported when one of their commands
    is actually invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        cmd = None
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if isinstance(attr, click.Command) and attr.name == cmd_name:
                cmd = attr
                break

        if cmd is None:
            raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


LAZY_SUBCOMMANDS = {
    # Alert management
    "alert": "folioalerts.cli.alerts",
    "alerts": "folioalerts.cli.alerts",
    # Watchlist
    "watch": "folioalerts.cli.watchlist",
    # Engine
    "check": "folioalerts.cli.engine",
    "run": "folioalerts.cli.engine",
    "triggers": "folioalerts.cli.engine",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="folioalerts")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.toml (default: ~/.config/folioalerts/config.toml).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool) -> None:
    """FolioAlerts - price, percentage and multi-condition alerts for your portfolio.

    Define watch conditions on crypto and stock symbols and let the
    scheduler re-check them on a daily or weekly cadence.

    \b
    Quick Start:
      folioalerts alert price BTC above 50000   # Create a price alert
      folioalerts alerts                        # List alerts
      folioalerts run                           # Run the scheduler
    """
    ctx.ensure_object(dict)

    try:
        settings = load_settings(config_path)
    except ValidationError as e:
        raise click.ClickException(str(e))

    configure_logging("DEBUG" if verbose else settings.logging.level)
    ctx.obj["settings"] = settings


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
