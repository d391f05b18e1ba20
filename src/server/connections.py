"""WebSocket peer connection handle for the push transport."""
import logging
from typing import Any

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from src.relay.models import envelopes
from src.relay.models.connection import ConnectionState, PeerConnection

logger = logging.getLogger(__name__)


class WebSocketConnection(PeerConnection):
    """Forwards envelopes immediately over an accepted WebSocket.

    Liveness uses application-level ``PING`` frames that the peer must
    answer with ``{"type": "PONG"}`` before the next probe cycle.
    """

    supports_probe = True

    def __init__(self, websocket: WebSocket) -> None:
        super().__init__()
        self._websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.state is not ConnectionState.CLOSED
            and self._websocket.client_state == WebSocketState.CONNECTED
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, message: dict[str, Any]) -> bool:
        if not self.is_open:
            return False
        try:
            await self._websocket.send_json(message)
        except WebSocketDisconnect:
            logger.debug("Send to %s after disconnect", self.connection_id)
            return False
        except Exception as exc:
            logger.warning("Send to %s failed: %s", self.connection_id, exc)
            return False
        return True

    async def close(self, code: int = 1000) -> None:
        if self._websocket.application_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self._websocket.close(code=code)
        except (RuntimeError, OSError) as exc:
            logger.debug("Close of %s failed: %s", self.connection_id, exc)

    async def probe(self) -> None:
        await self.send(envelopes.ping())
