"""
Metrics components.
"""

from relay_gateway.components.metrics.collector import (
    MetricsCollector,
    BroadcastMetrics,
    ConnectionMetrics,
    EventMetrics,
)

__all__ = [
    "MetricsCollector",
    "BroadcastMetrics",
    "ConnectionMetrics",
    "EventMetrics",
]
