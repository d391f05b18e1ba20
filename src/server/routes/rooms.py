"""Polling endpoints: /rooms."""
import logging

from fastapi import APIRouter, Query, status

from src.relay.models.session import Role
from src.server.models.requests import RoleName, RoleRequest, SendRequest
from src.server.models.responses import (
    JoinedResponse,
    LeftResponse,
    PollResponse,
    RoomCreatedResponse,
    SendResponse,
)
from src.server.polling import PollRelay

logger = logging.getLogger(__name__)


def create_rooms_router(poll: PollRelay) -> APIRouter:
    """Create polling router with injected dependencies."""
    router = APIRouter(prefix="/rooms", tags=["rooms"])

    @router.post("", response_model=RoomCreatedResponse, status_code=status.HTTP_201_CREATED)
    async def create_room() -> RoomCreatedResponse:
        """Create a room; the caller becomes its host."""
        code = await poll.create()
        return RoomCreatedResponse(code=code)

    @router.post("/{code}/join", response_model=JoinedResponse, status_code=status.HTTP_200_OK)
    async def join_room(code: str) -> JoinedResponse:
        """Join a room as its client.

        404 ROOM_NOT_FOUND when no room has this code, 409 ROOM_FULL
        when a client is already attached.
        """
        await poll.join(code)
        return JoinedResponse(code=code)

    @router.post("/{code}/send", response_model=SendResponse, status_code=status.HTTP_200_OK)
    async def send(code: str, body: SendRequest) -> SendResponse:
        """Relay an opaque payload to the other role of the room."""
        result = await poll.send(code, body.as_role, body.data)
        return SendResponse(status=result)

    @router.get("/{code}/poll", response_model=PollResponse, status_code=status.HTTP_200_OK)
    async def poll_messages(code: str, role: RoleName = Query(...)) -> PollResponse:
        """Drain queued messages for ``role``."""
        messages, partner_present = await poll.poll(code, Role(role))
        return PollResponse(messages=messages, partner_present=partner_present)

    @router.post("/{code}/leave", response_model=LeftResponse, status_code=status.HTTP_200_OK)
    async def leave(code: str, body: RoleRequest) -> LeftResponse:
        """Leave the room; a departing host closes it."""
        await poll.leave(code, body.as_role)
        logger.info("Poll %s left room %s", body.role, code)
        return LeftResponse()

    return router
