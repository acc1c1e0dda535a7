"""
Relay gateway core: connection lifecycle, broadcasting and stats.
"""

from relay_gateway.core.connection import (
    ConnectionLifecycle,
    Audience,
    ConnectionBroadcaster,
    select_recipients,
    ConnectionStats,
)

__all__ = [
    "ConnectionLifecycle",
    "Audience",
    "ConnectionBroadcaster",
    "select_recipients",
    "ConnectionStats",
]
