"""
Event handling components.

Event types, codec and routing.
"""

from relay_gateway.components.events.types import (
    Event,
    Ping,
    Pong,
    MessageSend,
    MessageAck,
    MessageNew,
    PresenceUpdate,
    Unknown,
)
from relay_gateway.components.events.codec import decode, encode
from relay_gateway.components.events.router import EventRouter, RoutingResult

__all__ = [
    # Event types
    "Event",
    "Ping",
    "Pong",
    "MessageSend",
    "MessageAck",
    "MessageNew",
    "PresenceUpdate",
    "Unknown",
    # Codec
    "decode",
    "encode",
    # Event router
    "EventRouter",
    "RoutingResult",
]
