"""
Concrete WebSocket Endpoint Implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import WebSocket

from relay_gateway.components.connection.registry import Connection
from relay_gateway.components.core.context import WebSocketContext
from relay_gateway.components.endpoints.base import WebSocketEndpointBase

if TYPE_CHECKING:
    from relay_gateway.connection_manager import ConnectionManager


class RelayEndpoint(WebSocketEndpointBase):
    """
    WebSocket endpoint for chat clients.

    Features:
    - No authentication; every client joins the single relay room
    - Every frame goes through ConnectionManager.handle_frame
    """

    def __init__(
        self,
        websocket: WebSocket,
        manager: "ConnectionManager",
        endpoint_name: str = "/ws",
    ):
        super().__init__(
            websocket=websocket,
            manager=manager,
            endpoint_name=endpoint_name,
            receive_timeout=manager.receive_timeout,
        )
        self.connection: Connection | None = None

    async def register_connection(self, context: WebSocketContext) -> None:
        """Accept the socket and add it to the registry."""
        self.connection = await self.manager.connect(self.websocket)
        context.connection_id = self.connection.id

    async def unregister_connection(self, context: WebSocketContext) -> None:
        """Remove from the registry."""
        if self.connection is not None:
            await self.manager.disconnect(self.connection)

    async def handle_message(self, data: str | bytes) -> None:
        """Decode, route and deliver one frame."""
        await self.manager.handle_frame(self.connection, data)
