"""Relay engine: peer event state machine.

Each connection moves ``UNBOUND -> BOUND(role, code) -> CLOSED``. The
core operations (``create_room``, ``join_room``, ``relay``, ``leave``)
are shared by the push and poll transports; ``handle_message`` and
``handle_disconnect`` are the push-transport entry points that decode
envelopes and send replies.
"""
import logging
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from src.relay.errors import AlreadyBoundError, RelayError
from src.relay.models import envelopes
from src.relay.models.connection import ConnectionState, PeerConnection
from src.relay.models.session import Role
from src.relay.registry import Removal, SessionRegistry

logger = logging.getLogger(__name__)


class RelayEngine:
    """Routes peer events into the registry and forwards messages."""

    def __init__(self, registry: SessionRegistry) -> None:
        self._registry = registry
        self._handlers: dict[str, Callable[[PeerConnection, Any], Awaitable[None]]] = {
            "CREATE_ROOM": self._on_create,
            "JOIN_ROOM": self._on_join,
            "RELAY": self._on_relay,
            "LEAVE": self._on_leave,
            "PONG": self._on_pong,
        }

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    async def create_room(self, conn: PeerConnection, reply: bool = False) -> str:
        """Create a session with ``conn`` as host.

        Raises:
            AlreadyBoundError: If ``conn`` is already in a session.
            CodeSpaceExhaustedError: If no code is available.
        """
        if conn.state is not ConnectionState.UNBOUND:
            raise AlreadyBoundError()
        code = await self._registry.create_session(conn)
        conn.bind(code, Role.HOST)
        if reply:
            await conn.send(envelopes.room_created(code))
        return code

    async def join_room(self, conn: PeerConnection, code: str, reply: bool = False) -> None:
        """Attach ``conn`` as the client of ``code`` and tell the host.

        On failure ``conn`` stays unbound. On success ``conn`` is bound in
        the same step as the registry attach, before any notice is sent.

        Raises:
            AlreadyBoundError: If ``conn`` is already in a session.
            RoomNotFoundError: If no session has this code.
            RoomFullError: If the client slot is taken.
        """
        if conn.state is not ConnectionState.UNBOUND:
            raise AlreadyBoundError()
        host = await self._registry.attach_client(code, conn)
        conn.bind(code, Role.CLIENT)
        if reply:
            await conn.send(envelopes.joined(code))
        if host is not None and host.is_open:
            await host.send(envelopes.player_joined())

    async def relay(self, conn: PeerConnection, data: Any) -> bool:
        """Forward ``data`` verbatim to the other peer of ``conn``'s session.

        Returns:
            True if the target transport accepted the payload, False if
            it was dropped (unbound sender, absent or closed target, or a
            target that refused it).
        """
        binding = conn.binding
        if binding is None:
            return False
        target = await self._registry.relay_target(binding.code, binding.role)
        if target is None:
            logger.debug("Relay dropped in room %s: no peer for %s", binding.code, binding.role.value)
            return False
        return await target.send(envelopes.relay(data))

    async def leave(self, conn: PeerConnection) -> None:
        """Detach ``conn`` from its session and notify the remaining peer."""
        binding = conn.binding
        if binding is None:
            return
        conn.unbind()
        result = await self._registry.detach(binding.code, binding.role, conn)
        if result is None or result.notify is None:
            return
        other = result.notify
        if result.session_deleted:
            self._release(other, binding.code)
            await other.send(envelopes.host_left())
        else:
            await other.send(envelopes.player_left())

    async def record_pong(self, conn: PeerConnection) -> None:
        binding = conn.binding
        if binding is None:
            return
        await self._registry.record_probe_answer(binding.code, binding.role, conn)

    async def drop(self, conn: PeerConnection) -> None:
        """Treat ``conn`` as dead: leave its session and close the transport."""
        logger.info("Dropping unresponsive connection %s", conn.connection_id)
        await self.leave(conn)
        conn.mark_closed()
        await conn.close()

    async def evict(self, removal: Removal) -> None:
        """Notify and unbind the peers of a session removed by sweep or close."""
        if removal.client is not None:
            self._release(removal.client, removal.code)
            await removal.client.send(envelopes.host_left())
        if removal.host is not None:
            self._release(removal.host, removal.code)
            await removal.host.send(envelopes.room_closed(removal.reason))

    async def handle_message(self, conn: PeerConnection, raw: str | bytes) -> None:
        """Decode one inbound frame and apply it.

        Malformed frames are logged and ignored; nothing is sent back.
        """
        try:
            envelope = envelopes.parse_inbound(raw)
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed envelope from %s: %d validation error(s)",
                conn.connection_id, exc.error_count(),
            )
            return
        if conn.state is ConnectionState.CLOSED:
            return
        await self._handlers[envelope.type](conn, envelope)

    async def handle_disconnect(self, conn: PeerConnection) -> None:
        """Transport-level close or error: same as LEAVE, then CLOSED."""
        await self.leave(conn)
        conn.mark_closed()

    async def _on_create(self, conn: PeerConnection, envelope: envelopes.CreateRoomEnvelope) -> None:
        try:
            await self.create_room(conn, reply=True)
        except RelayError as exc:
            await conn.send(envelopes.error(exc.message))

    async def _on_join(self, conn: PeerConnection, envelope: envelopes.JoinRoomEnvelope) -> None:
        try:
            await self.join_room(conn, envelope.code, reply=True)
        except RelayError as exc:
            logger.info("Join of room %s rejected: %s", envelope.code, exc.message)
            await conn.send(envelopes.error(exc.message))

    async def _on_relay(self, conn: PeerConnection, envelope: envelopes.RelayEnvelope) -> None:
        await self.relay(conn, envelope.data)

    async def _on_leave(self, conn: PeerConnection, envelope: envelopes.LeaveEnvelope) -> None:
        await self.leave(conn)

    async def _on_pong(self, conn: PeerConnection, envelope: envelopes.PongEnvelope) -> None:
        await self.record_pong(conn)

    @staticmethod
    def _release(conn: PeerConnection, code: str) -> None:
        binding = conn.binding
        if binding is not None and binding.code == code:
            conn.unbind()
