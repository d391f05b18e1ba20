"""CLI command implementations."""

from .close import close_command
from .serve import serve_command
from .status import status_command

__all__ = [
    "close_command",
    "serve_command",
    "status_command",
]
