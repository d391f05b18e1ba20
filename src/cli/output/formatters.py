"""Rich terminal output formatters."""

from typing import Any

from rich.console import Console
from rich.table import Table

_STATUS_STYLES = {"healthy": "green", "degraded": "yellow"}


def format_success(console: Console, message: str) -> None:
    """Display success message in green."""
    console.print(f"[green]{message}[/green]")


def format_error(console: Console, message: str, hint: str | None = None) -> None:
    """Display error message in red with optional hint."""
    console.print(f"[red]Error:[/red] {message}")
    if hint:
        console.print(f"[yellow]Hint:[/yellow] {hint}")


def format_health(console: Console, url: str, health: dict[str, Any]) -> None:
    """Render a /health response as a two-column table."""
    status = health.get("status", "unknown")
    style = _STATUS_STYLES.get(status, "red")

    table = Table(title=f"Relay {url}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Status", f"[{style}]{status}[/{style}]")
    table.add_row("Version", str(health.get("version", "-")))
    table.add_row("Sessions", str(health.get("sessions", 0)))
    table.add_row("Timestamp", str(health.get("timestamp", "-")))
    table.add_row("Last sweep", health.get("last_sweep_at") or "never")
    console.print(table)

    if health.get("message"):
        console.print(f"[yellow]Warning:[/yellow] {health['message']}")
