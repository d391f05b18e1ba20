"""Relay data models."""
from src.relay.models.connection import Binding, ConnectionState, PeerConnection
from src.relay.models.session import Role, Session

__all__ = ["Binding", "ConnectionState", "PeerConnection", "Role", "Session"]
