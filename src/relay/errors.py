"""Exception types for the relay core."""


class RelayError(Exception):
    """Base exception for relay failures reported back to the originating peer."""

    error_code: str = "RELAY_ERROR"
    default_message: str = "Relay error"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.code = code


class RoomNotFoundError(RelayError):
    """The referenced code has no active session."""

    error_code = "ROOM_NOT_FOUND"
    default_message = "Room not found"


class RoomFullError(RelayError):
    """The client slot of the session is already occupied."""

    error_code = "ROOM_FULL"
    default_message = "Room is full"


class HostAttachedError(RelayError):
    """A live host connection already occupies the host slot."""

    error_code = "HOST_ATTACHED"
    default_message = "Room already has a host"


class AlreadyBoundError(RelayError):
    """The connection is already bound to a session."""

    error_code = "ALREADY_BOUND"
    default_message = "Already in a room"


class NotAttachedError(RelayError):
    """No connection of the requested role is attached to the session."""

    error_code = "NOT_ATTACHED"
    default_message = "Role is not attached to this room"


class CodeSpaceExhaustedError(RelayError):
    """Every code in the code space is held by an active session."""

    error_code = "CAPACITY_EXHAUSTED"
    default_message = "No room codes available"
