"""
WebSocket endpoint components.

Base class, mixins and the concrete relay endpoint.
"""

from relay_gateway.components.endpoints.base import WebSocketEndpointBase
from relay_gateway.components.endpoints.handlers import RelayEndpoint
from relay_gateway.components.endpoints.mixins import (
    MessageValidationMixin,
    ConnectionLifecycleMixin,
)

__all__ = [
    "WebSocketEndpointBase",
    "RelayEndpoint",
    "MessageValidationMixin",
    "ConnectionLifecycleMixin",
]
