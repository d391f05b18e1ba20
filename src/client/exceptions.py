"""Exception types for the relay client library."""


class RelayClientError(Exception):
    """Base exception for all relay client errors."""
    pass


class TransportError(RelayClientError):
    """Network communication error."""
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RequestRejectedError(TransportError):
    """The server answered with a structured error body."""
    def __init__(self, message: str, status_code: int, error_code: str) -> None:
        super().__init__(message, status_code=status_code)
        self.error_code = error_code


class RoomNotFoundError(RequestRejectedError):
    """No room has the requested code."""
    pass


class RoomFullError(RequestRejectedError):
    """The room already has a client."""
    pass


class RateLimitError(TransportError):
    """Request was rate limited by the server."""
    def __init__(self, message: str, retry_after: int | None = None, limit: int | None = None,
                 remaining: int | None = None) -> None:
        super().__init__(message, status_code=429)
        self.retry_after = retry_after
        self.limit = limit
        self.remaining = remaining
