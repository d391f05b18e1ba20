"""Session model: one host slot, one client slot."""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from src.relay.models.connection import PeerConnection


class Role(Enum):
    """Slot a connection occupies within a session."""

    HOST = "host"
    CLIENT = "client"

    @property
    def other(self) -> "Role":
        return Role.CLIENT if self is Role.HOST else Role.HOST


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """A pairing context identified by a short code.

    Instances are owned by ``SessionRegistry``; nothing else mutates them.

    Attributes:
        code: Session code, immutable for the session's lifetime.
        host: Connection occupying the host slot, if any.
        client: Connection occupying the client slot, if any.
        created_at: Creation time.
        last_activity_at: Last relayed message, answered probe or poll.
        host_alive: Cleared when a probe is sent, set when answered.
        client_alive: Same as ``host_alive`` for the client slot.
    """

    code: str
    host: Optional["PeerConnection"] = None
    client: Optional["PeerConnection"] = None
    created_at: datetime = field(default_factory=_utcnow)
    last_activity_at: Optional[datetime] = None
    host_alive: bool = True
    client_alive: bool = True

    def __post_init__(self) -> None:
        if not self.code:
            raise ValueError("code cannot be empty")
        if self.last_activity_at is None:
            self.last_activity_at = self.created_at

    def peer(self, role: Role) -> Optional["PeerConnection"]:
        return self.host if role is Role.HOST else self.client

    def is_alive(self, role: Role) -> bool:
        return self.host_alive if role is Role.HOST else self.client_alive

    def set_alive(self, role: Role, alive: bool) -> None:
        if role is Role.HOST:
            self.host_alive = alive
        else:
            self.client_alive = alive

    def touch(self, now: Optional[datetime] = None) -> None:
        self.last_activity_at = now or _utcnow()

    def is_idle(self, max_idle_age: timedelta, now: datetime) -> bool:
        """Return True if the session has seen no activity for ``max_idle_age``."""
        return now - self.last_activity_at > max_idle_age
