"""WebSocket endpoint for the push transport."""
import logging

from fastapi import APIRouter, WebSocket

from src.relay.engine import RelayEngine
from src.server.connections import WebSocketConnection

logger = logging.getLogger(__name__)


def create_socket_router(engine: RelayEngine) -> APIRouter:
    """Create WebSocket router with injected dependencies."""
    router = APIRouter()

    @router.websocket("/ws")
    async def relay_socket(websocket: WebSocket) -> None:
        """Receive JSON envelopes until the peer disconnects.

        Frames of one connection are handled strictly in order; a close
        or transport error is treated as LEAVE.
        """
        await websocket.accept()
        conn = WebSocketConnection(websocket)
        logger.info("New connection %s", conn.connection_id)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                if raw is None:
                    continue
                await engine.handle_message(conn, raw)
        finally:
            await engine.handle_disconnect(conn)
            logger.info("Connection closed %s", conn.connection_id)

    return router
