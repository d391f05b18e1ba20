"""HTTP status mapping for relay errors."""
from src.relay.errors import (
    AlreadyBoundError,
    CodeSpaceExhaustedError,
    HostAttachedError,
    NotAttachedError,
    RelayError,
    RoomFullError,
    RoomNotFoundError,
)

_STATUS_CODES: dict[type[RelayError], int] = {
    RoomNotFoundError: 404,
    RoomFullError: 409,
    HostAttachedError: 409,
    AlreadyBoundError: 409,
    NotAttachedError: 409,
    CodeSpaceExhaustedError: 503,
}


def status_code_for(exc: RelayError) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in _STATUS_CODES:
            return _STATUS_CODES[exc_type]
    return 500
