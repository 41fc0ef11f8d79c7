"""Rich console notifier."""

from rich.console import Console
from rich.panel import Panel

from folioalerts.models import Notification
from folioalerts.notify.base import BaseNotifier


class ConsoleNotifier(BaseNotifier):
    """Prints each trigger as a rich panel."""

    def __init__(self, console: Console | None = None):
        self._console = console or Console()

    def notify(self, notification: Notification) -> None:
        triggered = notification.triggered_at.strftime("%Y-%m-%d %H:%M:%S %Z")
        self._console.print(Panel(
            f"[bold]{notification.description}[/bold]\n\n"
            f"Alert:     #{notification.alert_id} ({notification.alert_type})\n"
            f"Triggered: {triggered}",
            title=f"[bold yellow]🔔 {notification.symbol}[/bold yellow]",
            border_style="yellow",
        ))
