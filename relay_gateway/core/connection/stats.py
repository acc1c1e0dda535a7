"""
Connection Statistics.

Aggregates statistics from the connection components for health
endpoints.
"""

from __future__ import annotations

from typing import Any, Callable, TYPE_CHECKING

if TYPE_CHECKING:
    from relay_gateway.components.connection.registry import ConnectionRegistry
    from relay_gateway.components.metrics.collector import MetricsCollector


class ConnectionStats:
    """
    Aggregates connection statistics from components.

    Provides both async and sync versions:
    - Async: exact registry count, taken under the registry lock
    - Sync: for plain (non-async) health check handlers
    """

    def __init__(
        self,
        registry: "ConnectionRegistry",
        metrics: "MetricsCollector",
        get_total_connections: Callable[[], int],
        max_total_connections: int,
    ) -> None:
        self._registry = registry
        self._metrics = metrics
        self._get_total_connections = get_total_connections
        self._max_total_connections = max_total_connections

    async def get_stats(self) -> dict[str, Any]:
        """Get comprehensive connection statistics."""
        registered = len(await self._registry.snapshot())
        return self._build(registered)

    def get_stats_sync(self) -> dict[str, Any]:
        """Get connection statistics (sync version for health check)."""
        return self._build(self._registry.count())

    def _build(self, registered: int) -> dict[str, Any]:
        total = self._get_total_connections()
        return {
            "total_connections": total,
            "registered_connections": registered,
            "max_connections": self._max_total_connections,
            "utilization_percent": round(
                total / max(1, self._max_total_connections) * 100, 1
            ),
            "metrics": self._metrics.get_snapshot(),
        }
