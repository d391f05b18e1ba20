"""In-memory session registry.

``SessionRegistry`` is the only component that creates, mutates or
deletes a ``Session``. Every mutation runs under a single asyncio lock;
callers receive result objects describing which peers need to be
notified and perform the sends after the lock is released.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from src.relay.codes import CodeGenerator
from src.relay.errors import HostAttachedError, RoomFullError, RoomNotFoundError
from src.relay.models.connection import PeerConnection
from src.relay.models.session import Role, Session

logger = logging.getLogger(__name__)

RemovalListener = Callable[[Session], None]


@dataclass(frozen=True)
class Peer:
    """A connection occupying one slot of one session."""

    code: str
    role: Role
    conn: PeerConnection


@dataclass(frozen=True)
class DetachResult:
    """Outcome of clearing a slot.

    Attributes:
        code: Session code.
        role: Role that was detached.
        session_deleted: True when the host left and the session is gone.
        notify: The remaining peer, if one is attached.
    """

    code: str
    role: Role
    session_deleted: bool
    notify: Optional[PeerConnection] = None


@dataclass(frozen=True)
class Removal:
    """A session deleted by a sweep or an administrative close."""

    code: str
    host: Optional[PeerConnection] = None
    client: Optional[PeerConnection] = None
    reason: str = "idle"


@dataclass(frozen=True)
class ProbeCycle:
    """Connections to probe now and those whose last probe went unanswered."""

    to_probe: list[Peer] = field(default_factory=list)
    unanswered: list[Peer] = field(default_factory=list)


class SessionRegistry:
    """Owns the code -> Session map."""

    def __init__(self, code_generator: Optional[CodeGenerator] = None) -> None:
        self._sessions: dict[str, Session] = {}
        self._codes = code_generator or CodeGenerator()
        self._lock = asyncio.Lock()
        self._removal_listeners: list[RemovalListener] = []

    def add_removal_listener(self, listener: RemovalListener) -> None:
        """Register a callback invoked with every deleted session.

        Listeners run under the registry lock and must not await.
        """
        self._removal_listeners.append(listener)

    def get(self, code: str) -> Optional[Session]:
        return self._sessions.get(code)

    def count(self) -> int:
        return len(self._sessions)

    def codes(self) -> list[str]:
        return list(self._sessions)

    def connections(self) -> list[Peer]:
        """Snapshot of every attached connection."""
        peers = []
        for session in self._sessions.values():
            for role in Role:
                conn = session.peer(role)
                if conn is not None:
                    peers.append(Peer(code=session.code, role=role, conn=conn))
        return peers

    async def create_session(self, host: PeerConnection) -> str:
        """Allocate a code and insert a session with ``host`` in the host slot."""
        async with self._lock:
            code = self._codes.generate(self._sessions, len(self._sessions))
            self._sessions[code] = Session(code=code, host=host)
        logger.info("Room created: %s", code)
        return code

    async def attach_host(self, code: str, conn: PeerConnection) -> None:
        """Place ``conn`` in the host slot.

        A prior host handle is only replaced once it is no longer open.

        Raises:
            RoomNotFoundError: If no session has this code.
            HostAttachedError: If a live host is still attached.
        """
        async with self._lock:
            session = self._require(code)
            current = session.host
            if current is not None and current is not conn and current.is_open:
                raise HostAttachedError(code=code)
            session.host = conn
            session.host_alive = True
            session.touch()
        logger.info("Host attached to room %s", code)

    async def attach_client(self, code: str, conn: PeerConnection) -> Optional[PeerConnection]:
        """Place ``conn`` in the client slot.

        Returns:
            The host connection to notify of the join, if one is attached.

        Raises:
            RoomNotFoundError: If no session has this code.
            RoomFullError: If the client slot is occupied.
        """
        async with self._lock:
            session = self._require(code)
            if session.client is not None:
                raise RoomFullError(code=code)
            session.client = conn
            session.client_alive = True
            session.touch()
            host = session.host
        logger.info("Player joined room: %s", code)
        return host

    async def detach(
        self, code: str, role: Role, conn: Optional[PeerConnection] = None,
    ) -> Optional[DetachResult]:
        """Clear ``role``'s slot; a departing host ends the session.

        When ``conn`` is given the slot is only cleared if it still holds
        that handle, so a stale connection cannot detach its successor.

        Returns:
            None if the session or the slot no longer matches.
        """
        async with self._lock:
            session = self._sessions.get(code)
            if session is None:
                return None
            current = session.peer(role)
            if current is None or (conn is not None and current is not conn):
                return None
            other = session.peer(role.other)
            if role is Role.HOST:
                del self._sessions[code]
                self._notify_removed(session)
            else:
                session.client = None
                session.client_alive = True
        if role is Role.HOST:
            logger.info("Room destroyed: %s", code)
        else:
            logger.info("Player left room: %s", code)
        return DetachResult(
            code=code, role=role, session_deleted=role is Role.HOST, notify=other,
        )

    async def close(self, code: str) -> Optional[Removal]:
        """Administratively delete a session."""
        async with self._lock:
            session = self._sessions.pop(code, None)
            if session is None:
                return None
            self._notify_removed(session)
        logger.info("Room closed: %s", code)
        return Removal(code=code, host=session.host, client=session.client, reason="closed")

    async def sweep_idle(
        self, max_idle_age: timedelta, now: Optional[datetime] = None,
    ) -> list[Removal]:
        """Remove idle sessions and sessions whose host is gone.

        Args:
            max_idle_age: Inactivity allowed before a session is removed.
            now: Reference time, defaults to the current UTC time.

        Returns:
            One ``Removal`` per deleted session, carrying any peers that
            are still attached and need a notice.
        """
        now = now or datetime.now(timezone.utc)
        removed = []
        async with self._lock:
            for code, session in list(self._sessions.items()):
                host_gone = session.host is None or not session.host.is_open
                if host_gone or session.is_idle(max_idle_age, now):
                    del self._sessions[code]
                    self._notify_removed(session)
                    removed.append(Removal(
                        code=code, host=session.host, client=session.client,
                        reason="host_gone" if host_gone else "idle",
                    ))
        for removal in removed:
            logger.info("Cleaned up inactive room: %s", removal.code)
        return removed

    async def clear(self) -> list[Removal]:
        """Delete every session. Used at shutdown."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            for session in sessions:
                self._notify_removed(session)
        removed = [
            Removal(code=s.code, host=s.host, client=s.client, reason="shutdown")
            for s in sessions
        ]
        return removed

    async def touch(self, code: str) -> None:
        async with self._lock:
            session = self._sessions.get(code)
            if session is not None:
                session.touch()

    async def relay_target(self, code: str, role: Role) -> Optional[PeerConnection]:
        """Return the open peer opposite ``role`` and record activity.

        Returns None (without touching the session) when the session is
        gone or the other slot is empty or closed.
        """
        async with self._lock:
            session = self._sessions.get(code)
            if session is None:
                return None
            target = session.peer(role.other)
            if target is None or not target.is_open:
                return None
            session.touch()
            return target

    async def probe_cycle(self) -> ProbeCycle:
        """Start a liveness cycle.

        Every attached connection that supports probing is either listed
        as unanswered (its previous probe never came back) or has its
        alive flag cleared and is listed for a new probe.
        """
        cycle = ProbeCycle()
        async with self._lock:
            for session in self._sessions.values():
                for role in Role:
                    conn = session.peer(role)
                    if conn is None or not conn.supports_probe:
                        continue
                    peer = Peer(code=session.code, role=role, conn=conn)
                    if not session.is_alive(role):
                        cycle.unanswered.append(peer)
                    else:
                        session.set_alive(role, False)
                        cycle.to_probe.append(peer)
        return cycle

    async def record_probe_answer(
        self, code: str, role: Role, conn: Optional[PeerConnection] = None,
    ) -> None:
        async with self._lock:
            session = self._sessions.get(code)
            if session is None:
                return
            if conn is not None and session.peer(role) is not conn:
                return
            session.set_alive(role, True)
            session.touch()

    def _require(self, code: str) -> Session:
        session = self._sessions.get(code)
        if session is None:
            raise RoomNotFoundError(code=code)
        return session

    def _notify_removed(self, session: Session) -> None:
        for listener in self._removal_listeners:
            listener(session)
