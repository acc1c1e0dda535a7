"""
Metrics Collector for the relay gateway.

Centralizes counters for observability. All increments happen on the
hot path, so they are synchronous and guarded by a threading lock.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, asdict
from typing import Any


@dataclass
class BroadcastMetrics:
    """Metrics for broadcast operations."""
    total: int = 0
    failed: int = 0
    recipients_failed: int = 0


@dataclass
class ConnectionMetrics:
    """Metrics for connection management."""
    accepted: int = 0
    closed: int = 0
    rejected_limit: int = 0
    transport_errors: int = 0


@dataclass
class EventMetrics:
    """Metrics for inbound frame processing."""
    received: int = 0
    routed: int = 0
    decode_errors: int = 0
    oversized: int = 0
    messages_accepted: int = 0


class MetricsCollector:
    """
    Thread-safe metrics collector.

    Usage:
        metrics = MetricsCollector()
        metrics.increment_broadcast_total()
        stats = metrics.get_snapshot()
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._broadcast = BroadcastMetrics()
        self._connection = ConnectionMetrics()
        self._event = EventMetrics()

    # ==========================================================================
    # Broadcast Metrics
    # ==========================================================================

    def increment_broadcast_total(self) -> None:
        with self._lock:
            self._broadcast.total += 1

    def increment_broadcast_failed(self) -> None:
        with self._lock:
            self._broadcast.failed += 1

    def add_failed_recipients(self, count: int) -> None:
        with self._lock:
            self._broadcast.recipients_failed += count

    # ==========================================================================
    # Connection Metrics
    # ==========================================================================

    def increment_connection_accepted(self) -> None:
        with self._lock:
            self._connection.accepted += 1

    def increment_connection_closed(self) -> None:
        with self._lock:
            self._connection.closed += 1

    def increment_connection_rejected_limit(self) -> None:
        with self._lock:
            self._connection.rejected_limit += 1

    def increment_transport_errors(self) -> None:
        with self._lock:
            self._connection.transport_errors += 1

    # ==========================================================================
    # Event Metrics
    # ==========================================================================

    def increment_frames_received(self) -> None:
        with self._lock:
            self._event.received += 1

    def increment_events_routed(self) -> None:
        with self._lock:
            self._event.routed += 1

    def increment_decode_errors(self) -> None:
        with self._lock:
            self._event.decode_errors += 1

    def increment_oversized(self) -> None:
        with self._lock:
            self._event.oversized += 1

    def increment_messages_accepted(self) -> None:
        with self._lock:
            self._event.messages_accepted += 1

    # ==========================================================================
    # Snapshot
    # ==========================================================================

    def get_snapshot(self) -> dict[str, Any]:
        """Copy of all counters, grouped by area."""
        with self._lock:
            return {
                "broadcast": asdict(self._broadcast),
                "connections": asdict(self._connection),
                "events": asdict(self._event),
            }
