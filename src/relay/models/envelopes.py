"""Wire envelopes exchanged with peers.

Inbound envelopes are validated with pydantic; the ``data`` field of a
relay envelope is carried verbatim and never inspected.
"""
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator


class CreateRoomEnvelope(BaseModel):
    type: Literal["CREATE_ROOM"]


class JoinRoomEnvelope(BaseModel):
    type: Literal["JOIN_ROOM"]
    code: Annotated[str, Field(min_length=1)]

    @field_validator("code", mode="before")
    @classmethod
    def coerce_numeric_code(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class RelayEnvelope(BaseModel):
    type: Literal["RELAY"]
    data: Any = None


class LeaveEnvelope(BaseModel):
    type: Literal["LEAVE"]


class PongEnvelope(BaseModel):
    type: Literal["PONG"]


InboundEnvelope = Annotated[
    Union[CreateRoomEnvelope, JoinRoomEnvelope, RelayEnvelope, LeaveEnvelope, PongEnvelope],
    Field(discriminator="type"),
]

inbound_adapter: TypeAdapter[InboundEnvelope] = TypeAdapter(InboundEnvelope)


def parse_inbound(raw: Union[str, bytes]) -> InboundEnvelope:
    """Decode a JSON text frame into an inbound envelope.

    Raises:
        pydantic.ValidationError: If the frame is not valid JSON or does
            not match any known envelope.
    """
    return inbound_adapter.validate_json(raw)


def room_created(code: str) -> dict[str, Any]:
    return {"type": "ROOM_CREATED", "code": code}


def joined(code: str) -> dict[str, Any]:
    return {"type": "JOINED", "code": code}


def player_joined() -> dict[str, Any]:
    return {"type": "PLAYER_JOINED"}


def player_left() -> dict[str, Any]:
    return {"type": "PLAYER_LEFT"}


def host_left() -> dict[str, Any]:
    return {"type": "HOST_LEFT"}


def room_closed(reason: str) -> dict[str, Any]:
    return {"type": "ROOM_CLOSED", "reason": reason}


def relay(data: Any) -> dict[str, Any]:
    return {"type": "RELAY", "data": data}


def error(message: str) -> dict[str, Any]:
    return {"type": "ERROR", "message": message}


def ping() -> dict[str, Any]:
    return {"type": "PING"}
