"""
Core components: constants, errors, connection context.
"""

from relay_gateway.components.core.constants import (
    WSCloseCode,
    WSConstants,
    EVENT_PING,
    EVENT_PONG,
    EVENT_MESSAGE_SEND,
    EVENT_MESSAGE_ACK,
    EVENT_MESSAGE_NEW,
    EVENT_PRESENCE_UPDATE,
    STATUS_SENT,
)
from relay_gateway.components.core.context import WebSocketContext, sanitize_log_data
from relay_gateway.components.core.exceptions import (
    RelayError,
    DecodeError,
    TransportError,
    DeliveryError,
)

__all__ = [
    "WSCloseCode",
    "WSConstants",
    "EVENT_PING",
    "EVENT_PONG",
    "EVENT_MESSAGE_SEND",
    "EVENT_MESSAGE_ACK",
    "EVENT_MESSAGE_NEW",
    "EVENT_PRESENCE_UPDATE",
    "STATUS_SENT",
    "WebSocketContext",
    "sanitize_log_data",
    "RelayError",
    "DecodeError",
    "TransportError",
    "DeliveryError",
]
