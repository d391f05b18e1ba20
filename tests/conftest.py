"""Pytest fixtures for relay and server tests."""
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient

from src.relay.codes import CodeGenerator
from src.relay.engine import RelayEngine
from src.relay.models import envelopes
from src.relay.models.connection import ConnectionState, PeerConnection
from src.relay.registry import SessionRegistry
from src.server.app import create_app
from src.server.config import LivenessConfig, RateLimitConfig, ServerConfig


class FakeConnection(PeerConnection):
    """In-memory connection that records every envelope it is sent."""

    def __init__(self, supports_probe: bool = False, name: Optional[str] = None) -> None:
        super().__init__(connection_id=name)
        self.supports_probe = supports_probe
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._transport_open = True

    @property
    def is_open(self) -> bool:
        return self._transport_open and self.state is not ConnectionState.CLOSED

    async def send(self, message: dict[str, Any]) -> bool:
        if not self.is_open:
            return False
        self.sent.append(message)
        return True

    async def close(self) -> None:
        self._transport_open = False
        self.closed = True

    async def probe(self) -> None:
        await self.send(envelopes.ping())

    def drop_transport(self) -> None:
        """Simulate the peer vanishing without a close event."""
        self._transport_open = False

    def types(self) -> list[str]:
        return [m["type"] for m in self.sent]


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def engine(registry: SessionRegistry) -> RelayEngine:
    return RelayEngine(registry)


@pytest.fixture
def fixed_code_engine() -> RelayEngine:
    """Engine whose registry always allocates code 4821."""
    return RelayEngine(SessionRegistry(CodeGenerator(low=4821, high=4821)))


@pytest.fixture
def server_config() -> ServerConfig:
    return ServerConfig(
        host="127.0.0.1", port=8080,
        liveness=LivenessConfig(enabled=True, probe_interval=3600, idle_timeout=7200),
        rate_limit=RateLimitConfig(requests_per_minute=1000),
        poll_queue_max_size=50,
        admin_secret="",
    )


@pytest.fixture
def client(server_config: ServerConfig) -> TestClient:
    app = create_app(server_config)
    with TestClient(app) as c:
        yield c
