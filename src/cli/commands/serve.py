"""Run the relay server."""

import typer
import uvicorn
from rich.console import Console

from src.cli.output import format_error
from src.server.app import create_app
from src.server.config import load_config_from_env

console = Console()


def serve_command(host: str | None, port: int | None, log_level: str) -> None:
    """Load configuration from the environment and serve until interrupted."""
    try:
        config = load_config_from_env()
    except ValueError as e:
        format_error(console, str(e), hint="Check PORT, PROBE_INTERVAL and IDLE_TIMEOUT")
        raise typer.Exit(code=1)

    bind_host = host or config.host
    bind_port = port or config.port
    console.print(f"[bold]Relay listening on[/bold] {bind_host}:{bind_port}")
    uvicorn.run(create_app(config), host=bind_host, port=bind_port, log_level=log_level)
