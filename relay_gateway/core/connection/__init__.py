"""
Connection Management Module.

Components composed by ConnectionManager:
- lifecycle.py: Connection accept/disconnect
- broadcaster.py: Frame delivery
- stats.py: Statistics aggregation
"""

from relay_gateway.core.connection.lifecycle import ConnectionLifecycle
from relay_gateway.core.connection.broadcaster import (
    Audience,
    ConnectionBroadcaster,
    select_recipients,
)
from relay_gateway.core.connection.stats import ConnectionStats

__all__ = [
    "ConnectionLifecycle",
    "Audience",
    "ConnectionBroadcaster",
    "select_recipients",
    "ConnectionStats",
]
