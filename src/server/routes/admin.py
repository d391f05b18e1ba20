"""DELETE /rooms/{code} administrative close."""
import logging
from typing import Optional

from fastapi import APIRouter, Header, status
from fastapi.responses import JSONResponse

from src.relay.engine import RelayEngine
from src.relay.errors import RoomNotFoundError
from src.server.models.responses import ClosedResponse, ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def create_admin_router(engine: RelayEngine, admin_secret: str) -> APIRouter:
    """Create admin router. Only mounted when a secret is configured."""
    router = APIRouter(tags=["admin"])

    @router.delete("/rooms/{code}", response_model=ClosedResponse, status_code=status.HTTP_200_OK)
    async def close_room(
        code: str, x_admin_secret: Optional[str] = Header(default=None),
    ) -> ClosedResponse | JSONResponse:
        """Close a room, notifying any attached peers."""
        if x_admin_secret != admin_secret:
            body = ErrorResponse(error=ErrorDetail(
                code="NOT_AUTHORIZED", message="Invalid or missing X-Admin-Secret header",
            ))
            return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=body.model_dump())
        removal = await engine.registry.close(code)
        if removal is None:
            raise RoomNotFoundError(code=code)
        await engine.evict(removal)
        logger.info("Room %s closed by administrator", code)
        return ClosedResponse(code=code)

    return router
