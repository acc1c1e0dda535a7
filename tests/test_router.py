"""
Tests for event routing.
"""

from datetime import datetime, timezone

import pytest
import pytest_asyncio

from relay_gateway.components.connection.id_generator import ServerIdGenerator
from relay_gateway.components.connection.registry import ConnectionRegistry
from relay_gateway.components.events.codec import decode
from relay_gateway.components.events.router import EventRouter
from relay_gateway.components.events.types import MessageAck, Pong
from relay_gateway.components.metrics.collector import MetricsCollector
from relay_gateway.core.connection.broadcaster import ConnectionBroadcaster
from tests.conftest import FakeWebSocket, make_connection

FIXED_NOW = datetime(2026, 10, 19, 8, 0, 0, 250000, tzinfo=timezone.utc)


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def router(registry):
    broadcaster = ConnectionBroadcaster(registry, MetricsCollector())
    return EventRouter(broadcaster, ServerIdGenerator(), clock=lambda: FIXED_NOW)


@pytest_asyncio.fixture
async def peers(registry):
    """Three registered connections: a sender and two observers."""
    sockets = [FakeWebSocket() for _ in range(3)]
    connections = [await registry.register(make_connection(ws)) for ws in sockets]
    return connections, sockets


class TestPing:

    @pytest.mark.asyncio
    async def test_pong_to_sender_only(self, router, peers):
        (sender, _, _), (sender_ws, b_ws, c_ws) = peers

        result = await router.route(sender, decode('{"event":"ping","data":{}}'))

        assert sender_ws.sent == ['{"event":"pong","data":{}}']
        assert b_ws.sent == []
        assert c_ws.sent == []
        assert result.replied is True
        assert result.total_sent == 1

    @pytest.mark.asyncio
    async def test_every_ping_gets_a_pong(self, router, peers):
        (sender, _, _), (sender_ws, _, _) = peers

        for _ in range(3):
            await router.route(sender, decode('{"event":"ping"}'))

        assert [f["event"] for f in sender_ws.frames] == ["pong"] * 3


class TestMessageSend:

    @pytest.mark.asyncio
    async def test_ack_then_broadcast_to_everyone(self, router, peers):
        (sender, _, _), (sender_ws, b_ws, c_ws) = peers

        result = await router.route(
            sender,
            decode('{"event":"message.send","data":{"tempId":"t1","text":"hi"}}'),
        )

        ack, new = sender_ws.frames
        assert ack["event"] == "message.ack"
        assert ack["data"]["tempId"] == "t1"
        assert ack["data"]["status"] == "sent"
        assert new["event"] == "message.new"

        server_id = ack["data"]["serverId"]
        assert server_id == result.server_id
        for ws in (sender_ws, b_ws, c_ws):
            broadcast = ws.frames[-1]
            assert broadcast["event"] == "message.new"
            assert broadcast["data"]["serverId"] == server_id
            assert broadcast["data"]["id"] == server_id
            assert broadcast["data"]["text"] == "hi"
            assert broadcast["data"]["tempId"] == "t1"
            assert broadcast["data"]["createdAt"] == "2026-10-19T08:00:00.250Z"
            assert broadcast["data"]["timestamp"] == int(FIXED_NOW.timestamp() * 1000)
        assert len(b_ws.sent) == 1
        assert result.broadcast_sent == 3

    @pytest.mark.asyncio
    async def test_each_message_gets_a_distinct_server_id(self, router, peers):
        (sender, _, _), _ = peers
        frame = '{"event":"message.send","data":{"tempId":"t","text":"x"}}'

        results = [await router.route(sender, decode(frame)) for _ in range(20)]

        assert len({r.server_id for r in results}) == 20

    @pytest.mark.asyncio
    async def test_missing_temp_id_acks_with_null(self, router, peers):
        (sender, _, _), (sender_ws, _, _) = peers

        await router.route(sender, decode('{"event":"message.send","data":{"text":"x"}}'))

        assert sender_ws.frames[0]["data"]["tempId"] is None

    @pytest.mark.asyncio
    async def test_broken_sender_does_not_stop_broadcast(self, registry, router):
        broken = await registry.register(make_connection(FakeWebSocket(fail_sends=True)))
        other_ws = FakeWebSocket()
        await registry.register(make_connection(other_ws))

        result = await router.route(
            broken, decode('{"event":"message.send","data":{"tempId":"t"}}')
        )

        assert result.replied is False
        assert result.broadcast_sent == 1
        assert other_ws.frames[0]["data"]["serverId"] == result.server_id


class TestForwarding:

    @pytest.mark.asyncio
    async def test_presence_reaches_other_connections_unchanged(self, router, peers):
        (sender, _, _), (_, b_ws, c_ws) = peers
        frame = '{"event":"presence.update","data":{"userId":"u1","status":"offline","lastSeen":null}}'

        await router.route(sender, decode(frame))

        expected = {
            "event": "presence.update",
            "data": {"userId": "u1", "status": "offline", "lastSeen": None},
        }
        assert b_ws.frames == [expected]
        assert c_ws.frames == [expected]

    @pytest.mark.asyncio
    async def test_unknown_frame_forwarded_byte_identical(self, router, peers):
        (sender, _, _), (_, b_ws, c_ws) = peers
        raw = '{ "event" : "typing.start", "data" : {"conversationId": "c9"} }'

        result = await router.route(sender, decode(raw))

        assert b_ws.sent == [raw]
        assert c_ws.sent == [raw]
        assert result.event_name == "typing.start"

    @pytest.mark.asyncio
    async def test_server_event_variants_are_relayed(self, router, peers):
        (sender, _, _), (_, b_ws, _) = peers

        await router.route(sender, Pong())
        await router.route(sender, MessageAck(temp_id="t", server_id="s"))

        assert [f["event"] for f in b_ws.frames] == ["pong", "message.ack"]
