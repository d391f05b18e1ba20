"""Session pairing and message relay core."""
from src.relay.codes import CodeGenerator
from src.relay.engine import RelayEngine
from src.relay.errors import (
    AlreadyBoundError, CodeSpaceExhaustedError, HostAttachedError, NotAttachedError,
    RelayError, RoomFullError, RoomNotFoundError,
)
from src.relay.liveness import LivenessMonitor
from src.relay.models import Binding, ConnectionState, PeerConnection, Role, Session
from src.relay.registry import DetachResult, Peer, ProbeCycle, Removal, SessionRegistry
__all__ = ["CodeGenerator", "RelayEngine", "LivenessMonitor", "SessionRegistry",
           "DetachResult", "Peer", "ProbeCycle", "Removal",
           "Binding", "ConnectionState", "PeerConnection", "Role", "Session",
           "RelayError", "RoomNotFoundError", "RoomFullError", "HostAttachedError",
           "AlreadyBoundError", "NotAttachedError", "CodeSpaceExhaustedError"]
