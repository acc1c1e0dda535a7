"""
Connection Lifecycle Management.

Handles WebSocket acceptance, registration and teardown.

State machine per connection:
    CONNECTING -> OPEN      accepted and registered
    OPEN       -> CLOSING   read error, close frame or peer disconnect
    CLOSING    -> CLOSED    deregistered, resources released
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from relay_gateway.components.connection.registry import Connection, ConnectionState
from relay_gateway.components.core.constants import WSConstants
from relay_shared.config.logging import get_logger

if TYPE_CHECKING:
    from fastapi import WebSocket
    from relay_gateway.components.connection.registry import ConnectionRegistry
    from relay_gateway.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)


class ConnectionLifecycle:
    """
    Manages the lifecycle of relay connections.

    Responsibilities:
    - Accept new connections within the global capacity
    - Register them with the ConnectionRegistry
    - Deregister and mark them closed on teardown
    """

    def __init__(
        self,
        registry: "ConnectionRegistry",
        metrics: "MetricsCollector",
        max_total_connections: int,
        send_timeout: float = WSConstants.WS_SEND_TIMEOUT,
    ) -> None:
        """
        Initialize lifecycle manager with dependencies.

        Args:
            registry: Live connection set
            metrics: Collects connection metrics
            max_total_connections: Global connection limit
            send_timeout: Per-send timeout applied to each Connection
        """
        self._registry = registry
        self._metrics = metrics
        self._max_total_connections = max_total_connections
        self._send_timeout = send_timeout
        self._total_connections = 0
        self._counter_lock = asyncio.Lock()
        self._shutdown = False

    @property
    def total_connections(self) -> int:
        """Connections accepted and not yet torn down."""
        return self._total_connections

    @property
    def max_total_connections(self) -> int:
        return self._max_total_connections

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def set_shutdown(self, value: bool) -> None:
        self._shutdown = value

    async def connect(
        self,
        websocket: "WebSocket",
        timeout: float = WSConstants.WS_ACCEPT_TIMEOUT,
    ) -> Connection:
        """
        Accept a WebSocket and register it.

        Returns:
            The registered, open Connection.

        Raises:
            ConnectionError: If the server is at capacity, shutting down,
                or the handshake fails.
            ValueError: If registration fails. The slot is released first.
        """
        if self._shutdown:
            raise ConnectionError("Server is shutting down")

        # Atomic check-and-increment for connection limit
        async with self._counter_lock:
            if self._total_connections >= self._max_total_connections:
                self._metrics.increment_connection_rejected_limit()
                raise ConnectionError(
                    f"Server at capacity ({self._max_total_connections} connections)"
                )
            self._total_connections += 1

        try:
            await asyncio.wait_for(websocket.accept(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._decrement_connection_count()
            raise ConnectionError("WebSocket accept timed out")
        except Exception as e:
            await self._decrement_connection_count()
            raise ConnectionError(f"WebSocket accept failed: {e}")

        connection = Connection(websocket, send_timeout=self._send_timeout)
        connection.state = ConnectionState.OPEN
        try:
            await self._registry.register(connection)
        except Exception:
            connection.state = ConnectionState.CLOSED
            await self._decrement_connection_count()
            raise
        self._metrics.increment_connection_accepted()
        return connection

    async def disconnect(self, connection: Connection) -> None:
        """
        Tear down a connection: CLOSING, deregister, CLOSED.

        Safe to call more than once.
        """
        if connection.state == ConnectionState.CLOSED:
            return
        connection.state = ConnectionState.CLOSING
        removed = await self._registry.deregister(connection)
        connection.state = ConnectionState.CLOSED
        if removed:
            await self._decrement_connection_count()
            self._metrics.increment_connection_closed()

    async def _decrement_connection_count(self) -> None:
        """Safely decrement the connection counter."""
        async with self._counter_lock:
            self._total_connections = max(0, self._total_connections - 1)
