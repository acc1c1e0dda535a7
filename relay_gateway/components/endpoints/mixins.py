"""
WebSocket Endpoint Mixins.

Each mixin handles a single concern for WebSocket endpoints.

Mixins:
    MessageValidationMixin: Frame size checks
    ConnectionLifecycleMixin: Lifecycle logging and audit
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from fastapi import WebSocket

from relay_shared.config.logging import get_logger

if TYPE_CHECKING:
    from relay_gateway.connection_manager import ConnectionManager
    from relay_gateway.components.core.context import WebSocketContext

logger = get_logger(__name__)


# =============================================================================
# Protocols for mixin dependencies
# =============================================================================


class HasWebSocket(Protocol):
    """Protocol for classes with websocket attribute."""

    websocket: WebSocket
    endpoint_name: str
    context: "WebSocketContext | None"


class HasManager(Protocol):
    """Protocol for classes with manager attribute."""

    manager: "ConnectionManager"


# =============================================================================
# MessageValidationMixin
# =============================================================================


class MessageValidationMixin:
    """
    Mixin for frame size validation.

    Oversized frames are dropped, not fatal: the connection stays open
    and the client simply gets no reply for that frame.

    Requires:
        - self.manager: ConnectionManager
        - self.endpoint_name: str
        - self.context: WebSocketContext | None
    """

    def validate_message_size(self: "HasWebSocket & HasManager", data: str | bytes) -> bool:
        """
        Validate frame size against the configured limit.

        Returns:
            True if the frame may be processed, False if it must be dropped.
        """
        max_size = self.manager.max_message_size
        size = len(data.encode("utf-8")) if isinstance(data, str) else len(data)

        if size > max_size:
            logger.warning(
                "Frame size exceeded limit, dropping",
                endpoint=self.endpoint_name,
                identifier=self.context.identifier if self.context else "unknown",
                size=size,
                max_size=max_size,
            )
            self.manager.metrics.increment_oversized()
            return False
        return True


# =============================================================================
# ConnectionLifecycleMixin
# =============================================================================


class ConnectionLifecycleMixin:
    """
    Mixin for connection lifecycle logging.

    Requires:
        - self.endpoint_name: str
        - self.context: WebSocketContext | None
    """

    def log_connect(self: HasWebSocket) -> None:
        """Log connection event."""
        logger.info(
            "Client connected",
            **self.context.to_audit_dict("CONNECT") if self.context else {},
        )
        if self.context:
            self.context.audit("CONNECT")

    def log_disconnect(self: HasWebSocket, reason: str = "client_disconnect") -> None:
        """Log disconnection event."""
        logger.info(
            "Client disconnected",
            **(
                self.context.to_audit_dict("DISCONNECT", reason=reason)
                if self.context
                else {}
            ),
        )
        if self.context:
            self.context.audit("DISCONNECT", reason=reason)

    def log_connect_rejected(self: HasWebSocket, reason: str) -> None:
        """Log connection rejection event."""
        logger.warning(
            "Connection rejected",
            endpoint=self.endpoint_name,
            identifier=self.context.identifier if self.context else "unknown",
            reason=reason,
        )
        if self.context:
            self.context.audit("CONNECT_REJECTED", reason=reason)


__all__ = [
    "MessageValidationMixin",
    "ConnectionLifecycleMixin",
    "HasWebSocket",
    "HasManager",
]
