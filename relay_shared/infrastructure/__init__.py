"""
Shared runtime infrastructure.
"""

from relay_shared.infrastructure.correlation import (
    ConnectionIdFilter,
    bind_connection_id,
    connection_id_var,
    get_connection_id,
)

__all__ = [
    "ConnectionIdFilter",
    "bind_connection_id",
    "connection_id_var",
    "get_connection_id",
]
