"""
Tests for the connection manager and its lifecycle component.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from relay_gateway.components.connection.registry import ConnectionState
from relay_gateway.components.core.constants import WSCloseCode
from relay_gateway.components.endpoints.handlers import RelayEndpoint
from relay_gateway.connection_manager import ConnectionManager
from relay_shared.config.settings import Settings
from tests.conftest import FakeWebSocket


def small_manager(**overrides) -> ConnectionManager:
    return ConnectionManager(Settings(_env_file=None, **overrides))


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_connect_accepts_and_registers(self, manager):
        ws = FakeWebSocket()

        connection = await manager.connect(ws)

        assert ws.accepted
        assert connection.state == ConnectionState.OPEN
        assert connection in manager.registry
        assert manager.total_connections == 1

    @pytest.mark.asyncio
    async def test_disconnect_closes_and_deregisters(self, manager):
        connection = await manager.connect(FakeWebSocket())

        await manager.disconnect(connection)

        assert connection.state == ConnectionState.CLOSED
        assert connection not in manager.registry
        assert manager.total_connections == 0

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self, manager):
        connection = await manager.connect(FakeWebSocket())

        await manager.disconnect(connection)
        await manager.disconnect(connection)

        assert manager.total_connections == 0
        assert manager.metrics.get_snapshot()["connections"]["closed"] == 1

    @pytest.mark.asyncio
    async def test_capacity_limit(self):
        manager = small_manager(ws_max_total_connections=2)
        await manager.connect(FakeWebSocket())
        await manager.connect(FakeWebSocket())

        with pytest.raises(ConnectionError):
            await manager.connect(FakeWebSocket())

        assert manager.total_connections == 2
        assert manager.metrics.get_snapshot()["connections"]["rejected_limit"] == 1

    @pytest.mark.asyncio
    async def test_failed_accept_releases_slot(self):
        class BrokenHandshake(FakeWebSocket):
            async def accept(self):
                raise OSError("handshake failed")

        manager = small_manager(ws_max_total_connections=1)

        with pytest.raises(ConnectionError):
            await manager.connect(BrokenHandshake())

        assert manager.total_connections == 0
        await manager.connect(FakeWebSocket())

    @pytest.mark.asyncio
    async def test_failed_registration_releases_slot(self, monkeypatch):
        manager = small_manager(ws_max_total_connections=1)
        monkeypatch.setattr(
            manager.registry, "register", AsyncMock(side_effect=ValueError("duplicate id"))
        )

        with pytest.raises(ValueError):
            await manager.connect(FakeWebSocket())

        assert manager.total_connections == 0
        assert manager.metrics.get_snapshot()["connections"]["accepted"] == 0

        monkeypatch.undo()
        await manager.connect(FakeWebSocket())
        assert manager.total_connections == 1

    @pytest.mark.asyncio
    async def test_concurrent_connects_respect_capacity(self):
        manager = small_manager(ws_max_total_connections=10)

        results = await asyncio.gather(
            *[manager.connect(FakeWebSocket()) for _ in range(25)],
            return_exceptions=True,
        )

        accepted = [r for r in results if not isinstance(r, Exception)]
        assert len(accepted) == 10
        assert len(manager.registry) == 10

    @pytest.mark.asyncio
    async def test_shutdown_closes_all_connections(self, manager):
        sockets = [FakeWebSocket() for _ in range(3)]
        for ws in sockets:
            await manager.connect(ws)

        closed = await manager.shutdown()

        assert closed == 3
        assert all(ws.closed_with == WSCloseCode.GOING_AWAY for ws in sockets)
        assert len(manager.registry) == 0
        with pytest.raises(ConnectionError):
            await manager.connect(FakeWebSocket())


class TestHandleFrame:

    @pytest.mark.asyncio
    async def test_malformed_frame_produces_no_output(self, manager):
        a_ws, b_ws = FakeWebSocket(), FakeWebSocket()
        a = await manager.connect(a_ws)
        await manager.connect(b_ws)

        result = await manager.handle_frame(a, "{not json")

        assert result is None
        assert a_ws.sent == []
        assert b_ws.sent == []
        assert a.state == ConnectionState.OPEN
        events = manager.metrics.get_snapshot()["events"]
        assert events["received"] == 1
        assert events["decode_errors"] == 1
        assert events["routed"] == 0

    @pytest.mark.asyncio
    async def test_connection_keeps_working_after_malformed_frame(self, manager):
        ws = FakeWebSocket()
        connection = await manager.connect(ws)

        await manager.handle_frame(connection, '{"data": {}}')
        await manager.handle_frame(connection, '{"event":"ping"}')

        assert ws.frames == [{"event": "pong", "data": {}}]

    @pytest.mark.asyncio
    async def test_message_send_counts_accepted_message(self, manager):
        connection = await manager.connect(FakeWebSocket())

        result = await manager.handle_frame(
            connection, '{"event":"message.send","data":{"tempId":"t1"}}'
        )

        assert result.server_id.startswith("srv_")
        events = manager.metrics.get_snapshot()["events"]
        assert events["messages_accepted"] == 1
        assert events["routed"] == 1

    @pytest.mark.asyncio
    async def test_disconnected_peer_is_skipped(self, manager):
        a_ws, b_ws = FakeWebSocket(), FakeWebSocket()
        a = await manager.connect(a_ws)
        b = await manager.connect(b_ws)
        await manager.disconnect(b)

        result = await manager.handle_frame(a, '{"event":"typing","data":{}}')

        assert result.broadcast_sent == 1
        assert b_ws.sent == []


class TestStats:

    @pytest.mark.asyncio
    async def test_stats(self):
        manager = small_manager(ws_max_total_connections=4)
        await manager.connect(FakeWebSocket())

        stats = await manager.get_stats()

        assert stats["total_connections"] == 1
        assert stats["registered_connections"] == 1
        assert stats["max_connections"] == 4
        assert stats["utilization_percent"] == 25.0
        assert stats["metrics"]["connections"]["accepted"] == 1

    def test_stats_sync_without_connections(self, manager):
        stats = manager.get_stats_sync()
        assert stats["total_connections"] == 0
        assert stats["utilization_percent"] == 0.0


class TestEndpointRejection:

    @pytest.mark.asyncio
    async def test_capacity_refusal_closes_with_try_again_later(self):
        manager = small_manager(ws_max_total_connections=1)
        await manager.connect(FakeWebSocket())
        ws = FakeWebSocket()

        await RelayEndpoint(ws, manager).run()

        assert ws.closed_with == WSCloseCode.SERVER_OVERLOADED
        assert manager.total_connections == 1

    @pytest.mark.asyncio
    async def test_unexpected_registration_error_closes_with_server_error(
        self, manager, monkeypatch
    ):
        monkeypatch.setattr(
            manager.registry, "register", AsyncMock(side_effect=ValueError("duplicate id"))
        )
        ws = FakeWebSocket()

        await RelayEndpoint(ws, manager).run()

        assert ws.closed_with == WSCloseCode.SERVER_ERROR
        assert manager.total_connections == 0
