"""Polling transport adapter.

Each session reachable over HTTP polling gets a ``Mailbox`` with one
bounded FIFO per role. Notifications and relayed payloads for a poll
peer are enqueued into its role's queue and drained by ``poll``.

Unlike the push transport, a payload sent while the other role is
absent is queued and delivered on that role's first poll after it
joins.

When a session is deleted its mailbox is retired rather than dropped:
the final notices (``HOST_LEFT``, ``ROOM_CLOSED``) stay readable by one
more poll per role, until ``retention`` seconds have passed. Only then
does a poll of that code answer ``ROOM_NOT_FOUND``.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from src.relay.engine import RelayEngine
from src.relay.errors import NotAttachedError, RoomNotFoundError
from src.relay.models import envelopes
from src.relay.models.connection import ConnectionState, PeerConnection
from src.relay.models.session import Role, Session
from src.server.queue import MessageQueue

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = 300.0


class Mailbox:
    """Per-direction queues of one session."""

    def __init__(self, max_size: int) -> None:
        self._queues = {role: MessageQueue(max_size=max_size) for role in Role}

    def queue(self, role: Role) -> MessageQueue:
        return self._queues[role]


@dataclass
class RetiredMailbox:
    """Mailbox of a deleted session, kept until each role drained it once."""

    mailbox: Mailbox
    retired_at: float
    pending: set[Role] = field(default_factory=lambda: set(Role))


class PollConnection(PeerConnection):
    """Handle for a peer that fetches its messages by polling.

    Always assumed alive; abandoned poll sessions are removed by the
    idle sweep since every poll counts as activity.
    """

    def __init__(self, mailbox: Mailbox, role: Role) -> None:
        super().__init__()
        self.mailbox = mailbox
        self._role = role

    @property
    def is_open(self) -> bool:
        return self.state is not ConnectionState.CLOSED

    async def send(self, message: dict[str, Any]) -> bool:
        if not self.is_open:
            return False
        if not self.mailbox.queue(self._role).put(message):
            logger.warning("Mailbox full for %s %s, message dropped", self._role.value, self.connection_id)
            return False
        return True

    async def close(self) -> None:
        self.mark_closed()


class PollRelay:
    """Create/join/send/poll/leave on top of the shared relay engine."""

    def __init__(
        self, engine: RelayEngine, max_queue_size: int = 1000, retention: float = DEFAULT_RETENTION,
    ) -> None:
        self._engine = engine
        self._registry = engine.registry
        self._max_queue_size = max_queue_size
        self._retention = retention
        self._mailboxes: dict[str, Mailbox] = {}
        self._retired: dict[str, RetiredMailbox] = {}
        self._registry.add_removal_listener(self._retire)

    def mailbox_count(self) -> int:
        return len(self._mailboxes)

    def retired_count(self) -> int:
        return len(self._retired)

    async def create(self) -> str:
        mailbox = Mailbox(self._max_queue_size)
        code = await self._engine.create_room(PollConnection(mailbox, Role.HOST))
        self._retired.pop(code, None)
        self._mailboxes[code] = mailbox
        return code

    async def join(self, code: str) -> None:
        """Attach a poll client to ``code``.

        The mailbox is only registered once the join succeeded and the
        session still holds this client.

        Raises:
            RoomNotFoundError: If no session has this code.
            RoomFullError: If the client slot is taken.
        """
        # sessions opened by a push host have no mailbox yet
        mailbox = self._mailboxes.get(code) or Mailbox(self._max_queue_size)
        conn = PollConnection(mailbox, Role.CLIENT)
        await self._engine.join_room(conn, code)
        session = self._registry.get(code)
        if session is not None and session.client is conn:
            self._retired.pop(code, None)
            self._mailboxes.setdefault(code, mailbox)
        else:
            # removed while the join notices were being sent
            retired = self._retired.get(code)
            if retired is None or retired.mailbox is not mailbox:
                self._retired[code] = RetiredMailbox(mailbox, time.monotonic(), {Role.CLIENT})

    async def send(self, code: str, role: Role, data: Any) -> str:
        """Relay ``data`` from ``role`` to the other role.

        Returns:
            ``"delivered"`` when the attached peer accepted it, ``"queued"``
            when the other role is absent and the payload waits in its
            mailbox, ``"dropped"`` otherwise (including a full mailbox).
        """
        conn = self._attached(code, role)
        if await self._engine.relay(conn, data):
            return "delivered"
        session = self._registry.get(code)
        mailbox = self._mailboxes.get(code)
        if session is None or mailbox is None or session.peer(role.other) is not None:
            return "dropped"
        if not mailbox.queue(role.other).put(envelopes.relay(data)):
            return "dropped"
        await self._registry.touch(code)
        return "queued"

    async def poll(self, code: str, role: Role) -> tuple[list[dict[str, Any]], bool]:
        """Drain ``role``'s mailbox.

        Returns:
            The queued envelopes in FIFO order and whether the other
            role is currently attached. For a deleted session the final
            notices are returned once, with ``partner_present`` False.

        Raises:
            RoomNotFoundError: If the session is gone and its notices
                were already collected or have expired.
        """
        self._expire_retired()
        session = self._registry.get(code)
        if session is None or not isinstance(session.peer(role), PollConnection):
            retired = self._retired.get(code)
            if retired is not None and role in retired.pending:
                retired.pending.discard(role)
                if not retired.pending:
                    del self._retired[code]
                return retired.mailbox.queue(role).drain(), False
        conn = self._attached(code, role)
        await self._registry.record_probe_answer(code, role, conn)
        messages = conn.mailbox.queue(role).drain()
        session = self._registry.get(code)
        partner_present = session is not None and session.peer(role.other) is not None
        return messages, partner_present

    async def leave(self, code: str, role: Role) -> None:
        conn = self._attached(code, role)
        await self._engine.leave(conn)
        conn.mark_closed()
        conn.mailbox.queue(role).drain()
        retired = self._retired.get(code)
        if retired is not None and retired.mailbox is conn.mailbox:
            retired.pending.discard(role)
            if not retired.pending:
                del self._retired[code]

    def _attached(self, code: str, role: Role) -> PollConnection:
        session = self._registry.get(code)
        if session is None:
            raise RoomNotFoundError(code=code)
        conn: PeerConnection | None = session.peer(role)
        if not isinstance(conn, PollConnection) or code not in self._mailboxes:
            raise NotAttachedError(code=code)
        return conn

    def _retire(self, session: Session) -> None:
        mailbox = self._mailboxes.pop(session.code, None)
        if mailbox is None:
            return
        self._expire_retired()
        pending = {
            role for role in Role
            if isinstance(session.peer(role), PollConnection) and session.peer(role).mailbox is mailbox
        }
        if pending:
            self._retired[session.code] = RetiredMailbox(mailbox, time.monotonic(), pending)
        else:
            self._retired.pop(session.code, None)

    def _expire_retired(self) -> None:
        cutoff = time.monotonic() - self._retention
        for code in [c for c, r in self._retired.items() if r.retired_at <= cutoff]:
            del self._retired[code]
