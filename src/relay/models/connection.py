"""Transport-agnostic peer connection handle."""
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from src.relay.models.session import Role


class ConnectionState(Enum):
    """Lifecycle of a connection handle as seen by the relay engine."""

    UNBOUND = "unbound"
    BOUND = "bound"
    CLOSED = "closed"


@dataclass(frozen=True)
class Binding:
    """Session code and role a connection is bound to."""

    code: str
    role: Role


class PeerConnection(ABC):
    """Handle to one connected peer.

    Concrete handles either support a liveness probe (``supports_probe``)
    or are always assumed alive. ``send`` must be a no-op when the
    underlying transport is no longer open; it never raises for that.
    """

    supports_probe: bool = False

    def __init__(self, connection_id: Optional[str] = None) -> None:
        self.connection_id = connection_id or str(uuid.uuid4())
        self.state = ConnectionState.UNBOUND
        self.binding: Optional[Binding] = None

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the transport can currently deliver messages."""

    @abstractmethod
    async def send(self, message: dict[str, Any]) -> bool:
        """Deliver an outbound envelope, best effort.

        Returns:
            True if the transport accepted the envelope, False if it was
            dropped (closed transport, full buffer, send error).
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the underlying transport."""

    async def probe(self) -> None:
        """Send a liveness probe. Only called when ``supports_probe`` is set."""
        raise NotImplementedError(f"{type(self).__name__} does not support probing")

    def bind(self, code: str, role: Role) -> None:
        self.binding = Binding(code=code, role=role)
        self.state = ConnectionState.BOUND

    def unbind(self) -> None:
        self.binding = None
        if self.state is ConnectionState.BOUND:
            self.state = ConnectionState.UNBOUND

    def mark_closed(self) -> None:
        self.binding = None
        self.state = ConnectionState.CLOSED

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.connection_id[:8]} {self.state.value}>"
