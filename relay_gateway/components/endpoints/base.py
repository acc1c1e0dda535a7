"""
WebSocket Endpoint Base Class.

Owns the accept / read / close loop of one connection:

1. Register the connection (accept + registry)
2. Read frames in order, one at a time, and hand each to handle_message
3. On disconnect or transport error, unregister

Frames of one connection are processed strictly in the order received.
A failing connection only ends its own loop.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from fastapi import WebSocket, WebSocketDisconnect

from relay_gateway.components.core.constants import WSCloseCode
from relay_gateway.components.core.context import WebSocketContext
from relay_gateway.components.core.exceptions import TransportError
from relay_gateway.components.endpoints.mixins import (
    ConnectionLifecycleMixin,
    MessageValidationMixin,
)
from relay_shared.config.logging import get_logger
from relay_shared.infrastructure.correlation import bind_connection_id

if TYPE_CHECKING:
    from relay_gateway.connection_manager import ConnectionManager

logger = get_logger(__name__)


class WebSocketEndpointBase(
    MessageValidationMixin,
    ConnectionLifecycleMixin,
    ABC,
):
    """
    Base class for WebSocket endpoints.

    Subclasses implement:
    - register_connection(): Accept and register with ConnectionManager
    - unregister_connection(): Deregister on exit
    - handle_message(): Process one frame

    Usage:
        endpoint = RelayEndpoint(websocket, manager)
        await endpoint.run()
    """

    def __init__(
        self,
        websocket: WebSocket,
        manager: "ConnectionManager",
        endpoint_name: str,
        receive_timeout: float | None = None,
    ):
        """
        Initialize the endpoint handler.

        Args:
            websocket: The WebSocket connection.
            manager: ConnectionManager instance.
            endpoint_name: Name for logging (e.g., "/ws").
            receive_timeout: Idle timeout in seconds, None for no timeout.
        """
        self.websocket = websocket
        self.manager = manager
        self.endpoint_name = endpoint_name
        self.receive_timeout = receive_timeout

        self.context: WebSocketContext | None = None
        self._is_running = False

    @abstractmethod
    async def register_connection(self, context: WebSocketContext) -> None:
        """
        Register the connection with ConnectionManager.

        Raises:
            ConnectionError: If registration fails.
        """

    @abstractmethod
    async def unregister_connection(self, context: WebSocketContext) -> None:
        """Unregister the connection on disconnect."""

    @abstractmethod
    async def handle_message(self, data: str | bytes) -> None:
        """Handle one inbound frame."""

    async def reject(self, reason: str, code: int = WSCloseCode.SERVER_OVERLOADED) -> None:
        """
        Refuse a connection that could not be registered.

        1013 (try again later) for capacity and handshake refusals, 1011
        for unexpected server errors.
        """
        self.log_connect_rejected(reason)
        try:
            await self.websocket.close(code=code, reason=reason[:120])
        except Exception as e:
            logger.debug("Error closing rejected connection", error=str(e))

    async def run(self) -> None:
        """
        Main entry point - run the WebSocket endpoint.

        Handles the complete lifecycle:
        1. Create context
        2. Register connection
        3. Message loop
        4. Unregister on disconnect or transport error
        """
        self.context = WebSocketContext.from_websocket(self.websocket, self.endpoint_name)

        try:
            await self.register_connection(self.context)
        except ConnectionError as e:
            await self.reject(str(e))
            return
        except Exception as e:
            logger.error(
                "Unexpected error during connection",
                endpoint=self.endpoint_name,
                error=str(e),
            )
            await self.reject("Server error", code=WSCloseCode.SERVER_ERROR)
            return

        with bind_connection_id(self.context.connection_id):
            self.log_connect()

            self._is_running = True
            try:
                await self._message_loop()
            except WebSocketDisconnect as e:
                self.log_disconnect(f"client_disconnect:{e.code}")
            except TransportError as e:
                self.manager.metrics.increment_transport_errors()
                logger.warning(
                    "Transport error, closing connection",
                    endpoint=self.endpoint_name,
                    identifier=self.context.identifier,
                    error=str(e),
                )
                self.log_disconnect("transport_error")
            finally:
                self._is_running = False
                await self.unregister_connection(self.context)

    async def _message_loop(self) -> None:
        """
        Main message processing loop.

        Handles:
        - Receive (with optional idle timeout)
        - Frame size validation
        - Frame handling, strictly sequential
        """
        while self._is_running:
            data = await self._receive()
            if data is None:
                logger.info(
                    "Connection timed out (no messages)",
                    endpoint=self.endpoint_name,
                    identifier=self.context.identifier if self.context else "unknown",
                    timeout=self.receive_timeout,
                )
                await self.websocket.close(
                    code=WSCloseCode.NORMAL,
                    reason="Connection timeout",
                )
                self.log_disconnect("idle_timeout")
                break

            if not self.validate_message_size(data):
                continue

            await self.handle_message(data)

    async def _receive(self) -> str | bytes | None:
        """
        Receive one frame.

        Returns:
            Frame data, or None on idle timeout.

        Raises:
            WebSocketDisconnect: When the peer closes the connection.
            TransportError: When the channel breaks.
        """
        try:
            if self.receive_timeout is None:
                message = await self.websocket.receive()
            else:
                message = await asyncio.wait_for(
                    self.websocket.receive(),
                    timeout=self.receive_timeout,
                )
        except asyncio.TimeoutError:
            return None
        except (RuntimeError, OSError, ConnectionError) as e:
            raise TransportError(
                str(e), connection_id=self.context.connection_id if self.context else None
            ) from e

        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(code=message.get("code", WSCloseCode.NORMAL))

        text = message.get("text")
        if text is not None:
            return text
        return message.get("bytes") or b""
