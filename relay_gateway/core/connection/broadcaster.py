"""
Connection Broadcaster.

Handles sending frames to relay connections.

Delivery is best-effort and at-most-once: every recipient gets one
attempt, a failure on one recipient is logged and counted, and never
reaches the caller or affects the other recipients.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import TYPE_CHECKING

from relay_gateway.components.core.constants import WSConstants
from relay_gateway.components.core.exceptions import DeliveryError
from relay_shared.config.logging import get_logger

if TYPE_CHECKING:
    from relay_gateway.components.connection.registry import Connection, ConnectionRegistry
    from relay_gateway.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)


class Audience(str, Enum):
    """Which registry members receive a broadcast."""

    ALL = "all"
    OTHERS = "others"  # Everyone but the sender
    SENDER = "sender"


def select_recipients(
    connections: list["Connection"],
    sender: "Connection | None",
    audience: Audience,
) -> list["Connection"]:
    """Pick the recipients for ``audience`` out of a registry snapshot."""
    if audience == Audience.ALL:
        return list(connections)
    if sender is None:
        return [] if audience == Audience.SENDER else list(connections)
    if audience == Audience.SENDER:
        return [c for c in connections if c.id == sender.id]
    return [c for c in connections if c.id != sender.id]


class ConnectionBroadcaster:
    """
    Sends frames to one connection or to a registry snapshot.

    Large recipient lists are processed in batches; within a batch all
    sends run concurrently, so one slow client delays only its own send
    (bounded by the per-connection send timeout).
    """

    def __init__(
        self,
        registry: "ConnectionRegistry",
        metrics: "MetricsCollector",
        batch_size: int = WSConstants.BROADCAST_BATCH_SIZE,
        default_audience: Audience = Audience.ALL,
    ) -> None:
        """
        Initialize broadcaster with dependencies.

        Args:
            registry: Live connection set
            metrics: Collects broadcast metrics
            batch_size: Number of connections sent to concurrently
            default_audience: Audience used when broadcast() gets none
        """
        self._registry = registry
        self._metrics = metrics
        self._batch_size = max(1, batch_size)
        self._default_audience = default_audience

    async def _send_to_connection(self, connection: "Connection", frame: str | bytes) -> bool:
        """
        Send to a single connection, returning success status.

        Delivery errors are logged here and never propagate.
        """
        try:
            await connection.send(frame)
            return True
        except DeliveryError as e:
            logger.debug("Send failed", connection_id=connection.id, error=str(e))
            return False
        except Exception as e:
            logger.warning(
                "Unexpected send error",
                connection_id=connection.id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return False

    async def _broadcast_to_connections(
        self,
        connections: list["Connection"],
        frame: str | bytes,
        context: str = "broadcast",
    ) -> int:
        """
        Send to multiple connections in batches.

        Returns:
            Number of connections that received the frame.
        """
        if not connections:
            return 0

        sent = 0
        failed = 0

        for i in range(0, len(connections), self._batch_size):
            batch = connections[i : i + self._batch_size]
            results = await asyncio.gather(
                *[self._send_to_connection(c, frame) for c in batch],
                return_exceptions=True,
            )
            for result in results:
                if result is True:
                    sent += 1
                else:
                    failed += 1

        self._metrics.increment_broadcast_total()
        if failed > 0:
            self._metrics.increment_broadcast_failed()
            self._metrics.add_failed_recipients(failed)
            logger.debug(
                "Broadcast completed with failures",
                context=context,
                sent=sent,
                failed=failed,
                total=len(connections),
            )

        return sent

    async def reply(self, connection: "Connection", frame: str | bytes) -> bool:
        """Send ``frame`` to ``connection`` only."""
        return await self._send_to_connection(connection, frame)

    async def broadcast(
        self,
        frame: str | bytes,
        sender: "Connection | None" = None,
        audience: Audience | None = None,
    ) -> int:
        """
        Send ``frame`` to the members of a fresh registry snapshot.

        Args:
            frame: Encoded frame.
            sender: Connection that caused the broadcast, if any.
            audience: ALL (default), OTHERS or SENDER.

        Returns:
            Number of connections that received the frame.
        """
        audience = audience or self._default_audience
        snapshot = await self._registry.snapshot()
        recipients = select_recipients(snapshot, sender, audience)
        return await self._broadcast_to_connections(
            recipients, frame, f"{audience.value}:{sender.id if sender else '-'}"
        )
