"""Tests for the FastAPI server: health, polling endpoints, admin close."""
import pytest
from fastapi import Request, Response
from fastapi.testclient import TestClient

from src.server.app import create_app
from src.server.config import LivenessConfig, RateLimitConfig, ServerConfig
from src.server.middleware import rate_limit
from src.server.middleware.rate_limit import RateLimitMiddleware

ADMIN_SECRET = "s3cret"

_NO_LIVENESS = LivenessConfig(enabled=False)


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def monotonic(self) -> float:
        return self.now


async def _ok(*args) -> Response:
    return Response("ok")


def _request(client_ip: str) -> Request:
    return Request({
        "type": "http", "method": "GET", "path": "/rooms/1234/poll",
        "headers": [], "query_string": b"", "client": (client_ip, 5000),
    })


def _create(client: TestClient) -> str:
    response = client.post("/rooms")
    assert response.status_code == 201
    return response.json()["code"]


class TestHealth:
    def test_health_reports_sessions(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["sessions"] == 0
        assert body["timestamp"].endswith("Z")
        assert body["last_sweep_at"] is None

        _create(client)
        assert client.get("/health").json()["sessions"] == 1

    def test_degraded_when_monitor_not_started(self, server_config: ServerConfig) -> None:
        # no context manager, so the lifespan never starts the monitor
        client = TestClient(create_app(server_config))
        body = client.get("/health").json()
        assert body["status"] == "degraded"
        assert "Liveness" in body["message"]

    def test_healthy_when_liveness_disabled(self) -> None:
        config = ServerConfig(liveness=_NO_LIVENESS)
        with TestClient(create_app(config)) as client:
            assert client.get("/health").json()["status"] == "healthy"


class TestPollingFlow:
    def test_create_returns_host_role(self, client: TestClient) -> None:
        response = client.post("/rooms")
        assert response.status_code == 201
        body = response.json()
        assert body["role"] == "host"
        assert len(body["code"]) == 4 and body["code"].isdigit()

    def test_full_exchange(self, client: TestClient) -> None:
        code = _create(client)

        early = client.post(f"/rooms/{code}/send", json={"role": "host", "data": {"x": 1}})
        assert early.json() == {"status": "queued"}

        joined = client.post(f"/rooms/{code}/join")
        assert joined.status_code == 200
        assert joined.json() == {"status": "joined", "code": code, "role": "client"}

        client_poll = client.get(f"/rooms/{code}/poll", params={"role": "client"}).json()
        assert client_poll == {
            "messages": [{"type": "RELAY", "data": {"x": 1}}],
            "partner_present": True,
        }
        host_poll = client.get(f"/rooms/{code}/poll", params={"role": "host"}).json()
        assert host_poll["messages"] == [{"type": "PLAYER_JOINED"}]

        sent = client.post(f"/rooms/{code}/send", json={"role": "client", "data": "ready"})
        assert sent.json() == {"status": "delivered"}
        assert client.get(f"/rooms/{code}/poll", params={"role": "host"}).json()["messages"] == [
            {"type": "RELAY", "data": "ready"},
        ]

        left = client.post(f"/rooms/{code}/leave", json={"role": "client"})
        assert left.json() == {"status": "left"}
        host_poll = client.get(f"/rooms/{code}/poll", params={"role": "host"}).json()
        assert host_poll == {"messages": [{"type": "PLAYER_LEFT"}], "partner_present": False}

        client.post(f"/rooms/{code}/leave", json={"role": "host"})
        assert client.app.state.poll.mailbox_count() == 0
        gone = client.get(f"/rooms/{code}/poll", params={"role": "host"})
        assert gone.status_code == 404
        assert gone.json()["error"]["code"] == "ROOM_NOT_FOUND"

    def test_messages_delivered_in_order(self, client: TestClient) -> None:
        code = _create(client)
        client.post(f"/rooms/{code}/join")
        for i in range(5):
            client.post(f"/rooms/{code}/send", json={"role": "host", "data": i})
        messages = client.get(f"/rooms/{code}/poll", params={"role": "client"}).json()["messages"]
        assert [m["data"] for m in messages] == [0, 1, 2, 3, 4]

    def test_poll_drains_mailbox(self, client: TestClient) -> None:
        code = _create(client)
        client.post(f"/rooms/{code}/join")
        assert client.get(f"/rooms/{code}/poll", params={"role": "host"}).json()["messages"]
        assert client.get(f"/rooms/{code}/poll", params={"role": "host"}).json()["messages"] == []

    def test_full_mailbox_drops(self, client: TestClient) -> None:
        code = _create(client)
        statuses = [
            client.post(f"/rooms/{code}/send", json={"role": "host", "data": i}).json()["status"]
            for i in range(51)
        ]
        assert statuses[:50] == ["queued"] * 50
        assert statuses[50] == "dropped"

    def test_client_told_when_host_leaves(self, client: TestClient) -> None:
        code = _create(client)
        client.post(f"/rooms/{code}/join")
        client.post(f"/rooms/{code}/leave", json={"role": "host"})

        client_poll = client.get(f"/rooms/{code}/poll", params={"role": "client"})
        assert client_poll.status_code == 200
        assert client_poll.json() == {"messages": [{"type": "HOST_LEFT"}], "partner_present": False}
        gone = client.get(f"/rooms/{code}/poll", params={"role": "client"})
        assert gone.status_code == 404

    def test_full_mailbox_drops_with_partner_attached(self, client: TestClient) -> None:
        code = _create(client)
        client.post(f"/rooms/{code}/join")
        statuses = [
            client.post(f"/rooms/{code}/send", json={"role": "host", "data": i}).json()["status"]
            for i in range(52)
        ]
        assert statuses[:50] == ["delivered"] * 50
        assert statuses[50:] == ["dropped", "dropped"]
        messages = client.get(f"/rooms/{code}/poll", params={"role": "client"}).json()["messages"]
        assert [m["data"] for m in messages] == list(range(50))


class TestPollingErrors:
    def test_join_unknown_room(self, client: TestClient) -> None:
        response = client.post("/rooms/0000/join")
        assert response.status_code == 404
        assert response.json() == {
            "error": {"code": "ROOM_NOT_FOUND", "message": "Room not found", "details": {"code": "0000"}},
        }

    def test_join_full_room(self, client: TestClient) -> None:
        code = _create(client)
        assert client.post(f"/rooms/{code}/join").status_code == 200
        response = client.post(f"/rooms/{code}/join")
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "ROOM_FULL"
        assert response.json()["error"]["message"] == "Room is full"

    def test_poll_before_join(self, client: TestClient) -> None:
        code = _create(client)
        response = client.get(f"/rooms/{code}/poll", params={"role": "client"})
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "NOT_ATTACHED"

    def test_invalid_role_rejected(self, client: TestClient) -> None:
        code = _create(client)
        response = client.get(f"/rooms/{code}/poll", params={"role": "spectator"})
        assert response.status_code == 422
        response = client.post(f"/rooms/{code}/send", json={"role": "referee", "data": 1})
        assert response.status_code == 422

    def test_join_does_not_create_room(self, client: TestClient) -> None:
        client.post("/rooms/4321/join")
        assert client.get("/health").json()["sessions"] == 0


class TestAdminClose:
    def test_route_absent_without_secret(self, client: TestClient) -> None:
        code = _create(client)
        assert client.delete(f"/rooms/{code}").status_code in (404, 405)
        assert client.get("/health").json()["sessions"] == 1

    def test_close_requires_secret(self) -> None:
        config = ServerConfig(liveness=_NO_LIVENESS, admin_secret=ADMIN_SECRET)
        with TestClient(create_app(config)) as client:
            code = _create(client)
            missing = client.delete(f"/rooms/{code}")
            assert missing.status_code == 403
            assert missing.json()["error"]["code"] == "NOT_AUTHORIZED"
            wrong = client.delete(f"/rooms/{code}", headers={"X-Admin-Secret": "nope"})
            assert wrong.status_code == 403

            closed = client.delete(f"/rooms/{code}", headers={"X-Admin-Secret": ADMIN_SECRET})
            assert closed.status_code == 200
            assert closed.json() == {"status": "closed", "code": code}
            assert client.get("/health").json()["sessions"] == 0

            again = client.delete(f"/rooms/{code}", headers={"X-Admin-Secret": ADMIN_SECRET})
            assert again.status_code == 404

    def test_close_notifies_poll_peers(self) -> None:
        config = ServerConfig(liveness=_NO_LIVENESS, admin_secret=ADMIN_SECRET)
        with TestClient(create_app(config)) as client:
            code = _create(client)
            client.post(f"/rooms/{code}/join")
            client.get(f"/rooms/{code}/poll", params={"role": "host"})
            client.delete(f"/rooms/{code}", headers={"X-Admin-Secret": ADMIN_SECRET})

            host_poll = client.get(f"/rooms/{code}/poll", params={"role": "host"}).json()
            assert host_poll["messages"] == [{"type": "ROOM_CLOSED", "reason": "closed"}]
            client_poll = client.get(f"/rooms/{code}/poll", params={"role": "client"}).json()
            assert client_poll["messages"] == [{"type": "HOST_LEFT"}]


class TestRateLimit:
    def test_requests_over_limit_rejected(self) -> None:
        config = ServerConfig(liveness=_NO_LIVENESS, rate_limit=RateLimitConfig(requests_per_minute=3))
        with TestClient(create_app(config)) as client:
            for _ in range(3):
                response = client.post("/rooms")
                assert response.status_code == 201
                assert "X-RateLimit-Limit" in response.headers
            limited = client.post("/rooms")
            assert limited.status_code == 429
            assert limited.json()["error"]["code"] == "RATE_LIMITED"
            assert "Retry-After" in limited.headers
            assert client.get("/health").status_code == 200

    @pytest.mark.asyncio
    async def test_idle_clients_forgotten(self, monkeypatch: pytest.MonkeyPatch) -> None:
        clock = _Clock()
        monkeypatch.setattr(rate_limit, "time", clock)
        middleware = RateLimitMiddleware(_ok, requests_per_minute=10)

        await middleware.dispatch(_request("10.0.0.1"), _ok)
        assert set(middleware._windows) == {"10.0.0.1"}

        clock.now += rate_limit.WINDOW_SECONDS + 1
        await middleware.dispatch(_request("10.0.0.2"), _ok)
        assert set(middleware._windows) == {"10.0.0.2"}
