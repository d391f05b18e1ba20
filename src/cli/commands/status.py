"""Show relay server health."""

import asyncio

import typer
from rich.console import Console

from src.cli.output import format_error, format_health, json_output
from src.client import RelayClient, RelayClientError

console = Console()


async def _get_health(url: str) -> dict:
    async with RelayClient(url, max_retries=1) as client:
        return await client.health()


def status_command(url: str, json_flag: bool) -> None:
    """Query /health and print the session count and last sweep."""
    try:
        health = asyncio.run(_get_health(url))
    except RelayClientError as e:
        format_error(console, f"Failed to reach relay at {url}: {e}")
        raise typer.Exit(code=1)

    if json_flag:
        json_output(console, health)
    else:
        format_health(console, url, health)
