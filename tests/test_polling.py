"""Tests for the polling adapter on top of the relay engine."""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.relay.engine import RelayEngine
from src.relay.errors import NotAttachedError, RoomFullError, RoomNotFoundError
from src.relay.liveness import LivenessMonitor
from src.relay.models.session import Role
from src.server.polling import PollRelay
from tests.conftest import FakeConnection


@pytest.fixture
def poll(engine: RelayEngine) -> PollRelay:
    return PollRelay(engine, max_queue_size=10)


async def _poll_pair(poll: PollRelay) -> str:
    code = await poll.create()
    await poll.join(code)
    await poll.poll(code, Role.HOST)
    return code


class TestFinalNotices:
    @pytest.mark.asyncio
    async def test_client_sees_host_left_once(self, poll: PollRelay) -> None:
        code = await _poll_pair(poll)
        await poll.leave(code, Role.HOST)
        assert poll.mailbox_count() == 0

        messages, partner_present = await poll.poll(code, Role.CLIENT)
        assert messages == [{"type": "HOST_LEFT"}]
        assert partner_present is False
        assert poll.retired_count() == 0

        with pytest.raises(RoomNotFoundError):
            await poll.poll(code, Role.CLIENT)

    @pytest.mark.asyncio
    async def test_leaving_host_has_nothing_pending(self, poll: PollRelay) -> None:
        code = await _poll_pair(poll)
        await poll.leave(code, Role.HOST)
        with pytest.raises(RoomNotFoundError):
            await poll.poll(code, Role.HOST)

    @pytest.mark.asyncio
    async def test_push_host_leaving_poll_client(self, engine: RelayEngine, poll: PollRelay) -> None:
        host = FakeConnection()
        code = await engine.create_room(host)
        await poll.join(code)
        assert host.sent == [{"type": "PLAYER_JOINED"}]

        await engine.leave(host)
        messages, _ = await poll.poll(code, Role.CLIENT)
        assert messages == [{"type": "HOST_LEFT"}]
        with pytest.raises(RoomNotFoundError):
            await poll.poll(code, Role.HOST)
        assert poll.retired_count() == 0

    @pytest.mark.asyncio
    async def test_close_notifies_both_roles(self, engine: RelayEngine, poll: PollRelay) -> None:
        code = await _poll_pair(poll)
        removal = await engine.registry.close(code)
        await engine.evict(removal)

        client_messages, _ = await poll.poll(code, Role.CLIENT)
        host_messages, _ = await poll.poll(code, Role.HOST)
        assert client_messages == [{"type": "HOST_LEFT"}]
        assert host_messages == [{"type": "ROOM_CLOSED", "reason": "closed"}]
        assert poll.retired_count() == 0

    @pytest.mark.asyncio
    async def test_idle_sweep_notifies_both_roles(self, engine: RelayEngine, poll: PollRelay) -> None:
        code = await _poll_pair(poll)
        monitor = LivenessMonitor(engine, probe_interval=30, idle_timeout=300)
        await monitor.run_once(now=datetime.now(timezone.utc) + timedelta(seconds=301))

        host_messages, _ = await poll.poll(code, Role.HOST)
        client_messages, _ = await poll.poll(code, Role.CLIENT)
        assert host_messages == [{"type": "ROOM_CLOSED", "reason": "idle"}]
        assert client_messages == [{"type": "HOST_LEFT"}]

    @pytest.mark.asyncio
    async def test_shutdown_notices_readable(self, engine: RelayEngine, poll: PollRelay) -> None:
        code = await _poll_pair(poll)
        for removal in await engine.registry.clear():
            await engine.evict(removal)
        messages, _ = await poll.poll(code, Role.CLIENT)
        assert messages == [{"type": "HOST_LEFT"}]

    @pytest.mark.asyncio
    async def test_notices_expire(self, engine: RelayEngine) -> None:
        poll = PollRelay(engine, retention=0)
        code = await _poll_pair(poll)
        await poll.leave(code, Role.HOST)
        with pytest.raises(RoomNotFoundError):
            await poll.poll(code, Role.CLIENT)
        assert poll.retired_count() == 0

    @pytest.mark.asyncio
    async def test_recreated_code_not_shadowed(self, fixed_code_engine: RelayEngine) -> None:
        poll = PollRelay(fixed_code_engine)
        code = await _poll_pair(poll)
        await poll.leave(code, Role.HOST)
        assert await poll.create() == code
        assert poll.retired_count() == 0
        with pytest.raises(NotAttachedError):
            await poll.poll(code, Role.CLIENT)


class TestSend:
    @pytest.mark.asyncio
    async def test_full_mailbox_of_attached_partner(self, engine: RelayEngine) -> None:
        poll = PollRelay(engine, max_queue_size=2)
        code = await poll.create()
        await poll.join(code)
        statuses = [await poll.send(code, Role.HOST, i) for i in range(3)]
        assert statuses == ["delivered", "delivered", "dropped"]
        messages, _ = await poll.poll(code, Role.CLIENT)
        assert [m["data"] for m in messages] == [0, 1]

    @pytest.mark.asyncio
    async def test_full_mailbox_of_absent_partner(self, engine: RelayEngine) -> None:
        poll = PollRelay(engine, max_queue_size=1)
        code = await poll.create()
        assert await poll.send(code, Role.HOST, "a") == "queued"
        assert await poll.send(code, Role.HOST, "b") == "dropped"

    @pytest.mark.asyncio
    async def test_send_after_leave_rejected(self, poll: PollRelay) -> None:
        code = await _poll_pair(poll)
        await poll.leave(code, Role.CLIENT)
        with pytest.raises(NotAttachedError):
            await poll.send(code, Role.CLIENT, "late")


class TestJoin:
    @pytest.mark.asyncio
    async def test_unknown_code_keeps_no_mailbox(self, poll: PollRelay) -> None:
        with pytest.raises(RoomNotFoundError):
            await poll.join("1234")
        assert poll.mailbox_count() == 0
        assert poll.retired_count() == 0

    @pytest.mark.asyncio
    async def test_full_room_keeps_existing_mailbox(self, engine: RelayEngine, poll: PollRelay) -> None:
        host = FakeConnection()
        code = await engine.create_room(host)
        await poll.join(code)
        await poll.send(code, Role.CLIENT, "hello")

        with pytest.raises(RoomFullError):
            await poll.join(code)
        assert poll.mailbox_count() == 1
        assert host.sent[-1] == {"type": "RELAY", "data": "hello"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("join_first", [True, False])
    async def test_join_racing_host_leave(self, poll: PollRelay, join_first: bool) -> None:
        code = await poll.create()
        join = poll.join(code)
        leave = poll.leave(code, Role.HOST)
        calls = (join, leave) if join_first else (leave, join)
        results = await asyncio.gather(*calls, return_exceptions=True)
        join_result = results[0] if join_first else results[1]

        if isinstance(join_result, RoomNotFoundError):
            with pytest.raises(RoomNotFoundError):
                await poll.poll(code, Role.CLIENT)
        else:
            assert join_result is None
            messages, partner_present = await poll.poll(code, Role.CLIENT)
            assert messages == [{"type": "HOST_LEFT"}]
            assert partner_present is False
        assert poll.mailbox_count() == 0
        assert poll.retired_count() == 0
