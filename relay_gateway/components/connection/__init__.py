"""
Connection management components.

Connection handles, the live-connection registry and id generation.
"""

from relay_gateway.components.connection.registry import (
    Connection,
    ConnectionRegistry,
    ConnectionState,
    new_connection_id,
)
from relay_gateway.components.connection.id_generator import ServerIdGenerator

__all__ = [
    "Connection",
    "ConnectionRegistry",
    "ConnectionState",
    "new_connection_id",
    "ServerIdGenerator",
]
