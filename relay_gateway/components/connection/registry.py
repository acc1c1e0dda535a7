"""
Connection Registry - Tracks the set of open client connections.

The registry is the only shared mutable collection in the gateway. All
mutations and snapshots go through an asyncio.Lock so concurrent
register/deregister/snapshot calls never observe a half-updated set.

Snapshots are point-in-time copies. A connection may close right after a
snapshot is taken, so senders must tolerate failures on stale handles.
"""

from __future__ import annotations

import asyncio
import uuid
from enum import Enum
from typing import TYPE_CHECKING

from starlette.websockets import WebSocketDisconnect

from relay_gateway.components.core.constants import WSConstants
from relay_gateway.components.core.exceptions import DeliveryError
from relay_shared.config.logging import get_logger

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)


class ConnectionState(str, Enum):
    """Liveness state of a connection."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


def new_connection_id() -> str:
    """Server-side connection identifier, assigned at accept time."""
    return uuid.uuid4().hex[:12]


class Connection:
    """
    Handle to one open client channel.

    Wraps the transport with an id, a liveness state and a send lock so
    that concurrent broadcasts never interleave two frames on the wire.
    """

    def __init__(
        self,
        websocket: "WebSocket",
        connection_id: str | None = None,
        send_timeout: float = WSConstants.WS_SEND_TIMEOUT,
    ) -> None:
        self.websocket = websocket
        self.id = connection_id or new_connection_id()
        self.state = ConnectionState.CONNECTING
        self._send_timeout = send_timeout
        self._send_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, state={self.state.value})"

    @property
    def is_open(self) -> bool:
        return self.state == ConnectionState.OPEN

    async def send(self, frame: str | bytes) -> None:
        """
        Send one frame to this connection, as a binary frame for ``bytes``.

        Raises:
            DeliveryError: If the connection is not open, the send timed
                out, or the transport failed.
        """
        if not self.is_open:
            raise DeliveryError(
                f"Connection {self.id} is {self.state.value}",
                connection_id=self.id,
            )
        async with self._send_lock:
            try:
                if isinstance(frame, bytes):
                    sending = self.websocket.send_bytes(frame)
                else:
                    sending = self.websocket.send_text(frame)
                await asyncio.wait_for(sending, timeout=self._send_timeout)
            except asyncio.TimeoutError as e:
                raise DeliveryError(
                    f"Send to {self.id} timed out", connection_id=self.id
                ) from e
            except (WebSocketDisconnect, RuntimeError, OSError, ConnectionError) as e:
                raise DeliveryError(
                    f"Send to {self.id} failed: {e}", connection_id=self.id
                ) from e


class ConnectionRegistry:
    """
    Set of live connections keyed by connection id.

    Thread Safety:
    - register, deregister and snapshot hold the same asyncio.Lock
    - snapshot returns a new list, safe to iterate while the set changes
    """

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: object) -> bool:
        return isinstance(connection, Connection) and connection.id in self._connections

    async def register(self, connection: Connection) -> Connection:
        """
        Add a connection to the live set.

        Returns:
            The registered connection, used as the handle for deregister.

        Raises:
            ValueError: If a connection with the same id is already registered.
        """
        async with self._lock:
            if connection.id in self._connections:
                raise ValueError(f"Connection {connection.id} already registered")
            self._connections[connection.id] = connection
            count = len(self._connections)
        logger.debug("Connection registered", connection_id=connection.id, total=count)
        return connection

    async def deregister(self, connection: Connection) -> bool:
        """
        Remove a connection from the live set.

        Returns:
            True if the connection was registered, False if already gone.
        """
        async with self._lock:
            removed = self._connections.pop(connection.id, None) is not None
            count = len(self._connections)
        if removed:
            logger.debug("Connection deregistered", connection_id=connection.id, total=count)
        return removed

    async def snapshot(self) -> list[Connection]:
        """Point-in-time copy of the live connections. No ordering guarantee."""
        async with self._lock:
            return list(self._connections.values())

    def count(self) -> int:
        """Number of registered connections (unlocked read)."""
        return len(self._connections)
