"""
Relay Connection Manager.

Thin orchestrator that composes the connection components:
- ConnectionRegistry: live connection set
- ConnectionLifecycle: connect/disconnect
- ConnectionBroadcaster: frame delivery
- EventRouter: per-event dispatch
- ConnectionStats: statistics aggregation

One instance is owned by the application; there is no module-level
connection set.
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from relay_gateway.components.connection.id_generator import ServerIdGenerator
from relay_gateway.components.connection.registry import Connection, ConnectionRegistry
from relay_gateway.components.core.constants import WSCloseCode, WSConstants
from relay_gateway.components.core.context import sanitize_log_data
from relay_gateway.components.core.exceptions import DecodeError
from relay_gateway.components.events.codec import decode
from relay_gateway.components.events.router import EventRouter, RoutingResult
from relay_gateway.components.events.types import MessageSend
from relay_gateway.components.metrics.collector import MetricsCollector
from relay_gateway.core.connection import (
    ConnectionBroadcaster,
    ConnectionLifecycle,
    ConnectionStats,
)
from relay_shared.config.logging import get_logger
from relay_shared.config.settings import Settings, settings as default_settings

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)

__all__ = ["ConnectionManager"]


class ConnectionManager:
    """
    Manages relay connections and routes their frames.

    Configuration from settings:
    - ws_max_total_connections: Global connection limit (default: 1000)
    - ws_broadcast_batch_size: Parallel broadcast batch size (default: 50)
    - ws_send_timeout: Per-recipient send timeout (default: 5s)
    - server_id_prefix: Prefix of generated message ids (default: "srv_")
    """

    def __init__(
        self,
        settings: Settings | None = None,
        id_generator: ServerIdGenerator | None = None,
    ) -> None:
        """Initialize the connection manager with composed components."""
        self._settings = settings or default_settings

        self._registry = ConnectionRegistry()
        self._metrics = MetricsCollector()
        self._ids = id_generator or ServerIdGenerator(prefix=self._settings.server_id_prefix)

        self._lifecycle = ConnectionLifecycle(
            registry=self._registry,
            metrics=self._metrics,
            max_total_connections=self._settings.ws_max_total_connections,
            send_timeout=self._settings.ws_send_timeout,
        )

        self._broadcaster = ConnectionBroadcaster(
            registry=self._registry,
            metrics=self._metrics,
            batch_size=self._settings.ws_broadcast_batch_size,
        )

        self._router = EventRouter(self._broadcaster, self._ids)

        self._stats = ConnectionStats(
            registry=self._registry,
            metrics=self._metrics,
            get_total_connections=lambda: self._lifecycle.total_connections,
            max_total_connections=self._settings.ws_max_total_connections,
        )

    # =========================================================================
    # Public properties
    # =========================================================================

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def total_connections(self) -> int:
        """Total number of active connections."""
        return self._lifecycle.total_connections

    @property
    def max_message_size(self) -> int:
        return self._settings.ws_max_message_size

    @property
    def receive_timeout(self) -> float | None:
        return self._settings.ws_receive_timeout

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(
        self,
        websocket: "WebSocket",
        timeout: float = WSConstants.WS_ACCEPT_TIMEOUT,
    ) -> Connection:
        """Accept and register a WebSocket. Raises ConnectionError when refused."""
        return await self._lifecycle.connect(websocket, timeout=timeout)

    async def disconnect(self, connection: Connection) -> None:
        """Deregister a connection; idempotent."""
        await self._lifecycle.disconnect(connection)

    async def shutdown(self) -> int:
        """
        Stop accepting connections and close every open one.

        Returns:
            Number of connections closed.
        """
        self._lifecycle.set_shutdown(True)
        connections = await self._registry.snapshot()
        closed = 0
        for connection in connections:
            try:
                await connection.websocket.close(
                    code=WSCloseCode.GOING_AWAY, reason="Server shutting down"
                )
            except Exception as e:
                logger.debug(
                    "Error closing connection on shutdown",
                    connection_id=connection.id,
                    error=str(e),
                )
            await self._lifecycle.disconnect(connection)
            closed += 1
        return closed

    # =========================================================================
    # Frame handling
    # =========================================================================

    async def handle_frame(
        self, connection: Connection, frame: str | bytes
    ) -> RoutingResult | None:
        """
        Decode and route one inbound frame.

        Malformed frames are logged and dropped; they never close the
        connection and produce no outbound frame.

        Returns:
            The routing result, or None if the frame was dropped.
        """
        self._metrics.increment_frames_received()
        try:
            event = decode(frame)
        except DecodeError as e:
            self._metrics.increment_decode_errors()
            logger.warning(
                "Dropping malformed frame",
                connection_id=connection.id,
                error=str(e),
                frame=sanitize_log_data(frame, WSConstants.LOG_SNIPPET_LENGTH),
            )
            return None

        if isinstance(event, MessageSend):
            self._metrics.increment_messages_accepted()

        result = await self._router.route(connection, event)
        self._metrics.increment_events_routed()
        logger.debug(
            "Event routed",
            connection_id=connection.id,
            event=result.event_name,
            replied=result.replied,
            broadcast_sent=result.broadcast_sent,
        )
        return result

    # =========================================================================
    # Stats
    # =========================================================================

    async def get_stats(self) -> dict[str, Any]:
        return await self._stats.get_stats()

    def get_stats_sync(self) -> dict[str, Any]:
        return self._stats.get_stats_sync()
