"""JSON output mode utilities."""

import dataclasses
from datetime import datetime
from typing import Any

from rich.console import Console


def _default(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def json_output(console: Console, data: Any) -> None:
    """Output data as formatted JSON for scripting (``--json``)."""
    console.print_json(data=data, default=_default)
