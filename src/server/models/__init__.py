"""Pydantic models for request/response validation."""
from src.server.models.requests import RoleRequest, SendRequest
from src.server.models.responses import (
    RoomCreatedResponse,
    JoinedResponse,
    SendResponse,
    PollResponse,
    LeftResponse,
    ClosedResponse,
    HealthResponse,
    ErrorDetail,
    ErrorResponse,
)

__all__ = [
    "RoleRequest",
    "SendRequest",
    "RoomCreatedResponse",
    "JoinedResponse",
    "SendResponse",
    "PollResponse",
    "LeftResponse",
    "ClosedResponse",
    "HealthResponse",
    "ErrorDetail",
    "ErrorResponse",
]
