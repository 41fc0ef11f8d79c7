"""CLI commands for FolioAlerts.

This package provides the command-line management interface:
creating and listing alerts, watchlists, and running the scheduler.
"""

from folioalerts.cli.main import cli, main

__all__ = ["cli", "main"]
