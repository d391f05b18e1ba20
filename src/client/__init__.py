"""Relay polling API client library."""

from .client import PollResult, RelayClient
from .exceptions import RateLimitError, RelayClientError, RequestRejectedError, RoomFullError, RoomNotFoundError, TransportError

__all__ = [
    "RelayClient", "PollResult",
    "RelayClientError", "TransportError", "RequestRejectedError", "RoomNotFoundError", "RoomFullError", "RateLimitError",
]
