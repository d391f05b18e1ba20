"""Administratively close a room."""

import asyncio

import typer
from rich.console import Console

from src.cli.output import format_error, format_success, json_output
from src.client import RelayClient, RelayClientError, RoomNotFoundError

console = Console()


async def _close(url: str, code: str, secret: str) -> None:
    async with RelayClient(url, max_retries=1) as client:
        await client.close_room(code, secret)


def close_command(code: str, url: str, secret: str, json_flag: bool) -> None:
    """Close room ``code``; attached peers are notified by the server."""
    if not secret:
        format_error(console, "An admin secret is required", hint="Pass --secret or set ADMIN_SECRET")
        raise typer.Exit(code=1)
    try:
        asyncio.run(_close(url, code, secret))
    except RoomNotFoundError:
        if json_flag:
            json_output(console, {"status": "not_found", "code": code})
        else:
            format_error(console, f"Room {code} not found")
        raise typer.Exit(code=1)
    except RelayClientError as e:
        format_error(console, f"Failed to close room {code}: {e}")
        raise typer.Exit(code=1)

    if json_flag:
        json_output(console, {"status": "closed", "code": code})
    else:
        format_success(console, f"Room {code} closed")
