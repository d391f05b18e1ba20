"""Response models for API endpoints."""
from typing import Annotated, Any, Literal, Optional
from pydantic import BaseModel, Field


class RoomCreatedResponse(BaseModel):
    code: Annotated[str, Field()]
    role: Literal["host"] = "host"


class JoinedResponse(BaseModel):
    status: Literal["joined"] = "joined"
    code: Annotated[str, Field()]
    role: Literal["client"] = "client"


class SendResponse(BaseModel):
    status: Annotated[Literal["delivered", "queued", "dropped"], Field()]


class PollResponse(BaseModel):
    messages: Annotated[list[dict[str, Any]], Field()]
    partner_present: bool


class LeftResponse(BaseModel):
    status: Literal["left"] = "left"


class ClosedResponse(BaseModel):
    status: Literal["closed"] = "closed"
    code: Annotated[str, Field()]


class HealthResponse(BaseModel):
    status: Annotated[Literal["healthy", "degraded"], Field()]
    version: Annotated[str, Field()]
    sessions: Annotated[int, Field(ge=0)]
    timestamp: Annotated[str, Field()]
    last_sweep_at: Optional[str] = None
    message: Optional[str] = None


class ErrorDetail(BaseModel):
    code: Annotated[
        Literal[
            "INVALID_FORMAT",
            "NOT_AUTHORIZED",
            "ROOM_NOT_FOUND",
            "ROOM_FULL",
            "HOST_ATTACHED",
            "ALREADY_BOUND",
            "NOT_ATTACHED",
            "CAPACITY_EXHAUSTED",
            "RATE_LIMITED",
            "INTERNAL_ERROR",
        ],
        Field(),
    ]
    message: Annotated[str, Field()]
    details: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
