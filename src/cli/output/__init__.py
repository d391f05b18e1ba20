"""Terminal and JSON output for relay CLI commands."""

from .formatters import format_error, format_health, format_success
from .json_output import json_output

__all__ = [
    "format_error",
    "format_health",
    "format_success",
    "json_output",
]
