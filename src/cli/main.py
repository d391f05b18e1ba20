"""Main CLI entry point for the game session relay."""

import typer
from rich.console import Console

from src.cli.commands.close import close_command
from src.cli.commands.serve import serve_command
from src.cli.commands.status import status_command

DEFAULT_URL = "http://localhost:8080"

app = typer.Typer(
    name="relay",
    help="Game Session Relay - pairs two peers under a short code and relays their messages",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()


@app.command("serve")
def serve(
    host: str = typer.Option(None, "-h", "--host", help="Bind address (default RELAY_HOST)"),
    port: int = typer.Option(None, "-p", "--port", help="Port (default PORT)"),
    log_level: str = typer.Option("info", "--log-level", help="Uvicorn log level"),
) -> None:
    """Run the relay server."""
    serve_command(host, port, log_level)


@app.command("status")
def status(
    url: str = typer.Option(DEFAULT_URL, "-u", "--url", help="Relay base URL"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show relay health and session count."""
    status_command(url, json_flag)


@app.command("close")
def close(
    code: str = typer.Argument(..., help="Room code"),
    url: str = typer.Option(DEFAULT_URL, "-u", "--url", help="Relay base URL"),
    secret: str = typer.Option("", "-s", "--secret", envvar="ADMIN_SECRET", help="Admin secret"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Close a room and notify its peers."""
    close_command(code, url, secret, json_flag)


def main() -> None:
    """Entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)


if __name__ == "__main__":
    main()
