"""
Event Router - Dispatches decoded events to their handlers.

Routing rules:
- ping: pong to the sender only
- message.send: ack to the sender, then message.new to every connection
  (sender included)
- presence.update: rebroadcast the payload to every connection
- anything else: rebroadcast the raw frame to every connection

No event closes a connection. The only state is the id generator,
shared by all connections.

Usage:
    router = EventRouter(broadcaster, ServerIdGenerator())
    result = await router.route(connection, event)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Awaitable, Callable, Protocol

from relay_gateway.components.events.codec import encode
from relay_gateway.components.events.types import (
    Event,
    MessageAck,
    MessageNew,
    MessageSend,
    Ping,
    Pong,
    PresenceUpdate,
    Unknown,
)
from relay_shared.config.logging import get_logger

if TYPE_CHECKING:
    from relay_gateway.components.connection.id_generator import ServerIdGenerator
    from relay_gateway.components.connection.registry import Connection
    from relay_gateway.core.connection.broadcaster import Audience

logger = get_logger(__name__)


class BroadcasterProtocol(Protocol):
    """Protocol for ConnectionBroadcaster to avoid circular imports."""

    async def reply(self, connection: "Connection", frame: str | bytes) -> bool: ...

    async def broadcast(
        self,
        frame: str | bytes,
        sender: "Connection | None" = None,
        audience: "Audience | None" = None,
    ) -> int: ...


@dataclass
class RoutingResult:
    """Result of routing one event."""

    event_name: str
    replied: bool = False
    broadcast_sent: int = 0
    server_id: str | None = None

    @property
    def total_sent(self) -> int:
        """Total number of frames delivered for this event."""
        return int(self.replied) + self.broadcast_sent


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventRouter:
    """Routes events from one sender to the sender and/or every connection."""

    def __init__(
        self,
        broadcaster: BroadcasterProtocol,
        id_generator: "ServerIdGenerator",
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._broadcaster = broadcaster
        self._ids = id_generator
        self._clock = clock
        self._handlers: dict[type, Callable[["Connection", Event], Awaitable[RoutingResult]]] = {
            Ping: self._handle_ping,
            MessageSend: self._handle_message_send,
            PresenceUpdate: self._handle_presence_update,
            Unknown: self._handle_unknown,
        }

    async def route(self, sender: "Connection", event: Event) -> RoutingResult:
        """Dispatch ``event`` received on ``sender``."""
        handler = self._handlers.get(type(event), self._handle_forward)
        return await handler(sender, event)

    async def _handle_ping(self, sender: "Connection", event: Ping) -> RoutingResult:
        replied = await self._broadcaster.reply(sender, encode(Pong()))
        return RoutingResult(event_name=event.name, replied=replied)

    async def _handle_message_send(
        self, sender: "Connection", event: MessageSend
    ) -> RoutingResult:
        server_id = self._ids.next_id()
        logger.debug(
            "Message accepted",
            connection_id=sender.id,
            temp_id=event.temp_id,
            server_id=server_id,
        )

        ack = MessageAck(temp_id=event.temp_id, server_id=server_id)
        replied = await self._broadcaster.reply(sender, encode(ack))

        message = MessageNew.from_send(event, server_id, now=self._clock())
        sent = await self._broadcaster.broadcast(encode(message), sender=sender)

        return RoutingResult(
            event_name=event.name,
            replied=replied,
            broadcast_sent=sent,
            server_id=server_id,
        )

    async def _handle_presence_update(
        self, sender: "Connection", event: PresenceUpdate
    ) -> RoutingResult:
        status = event.data.get("status") if isinstance(event.data, dict) else None
        logger.debug("Presence update", connection_id=sender.id, status=status)
        sent = await self._broadcaster.broadcast(encode(event), sender=sender)
        return RoutingResult(event_name=event.name, broadcast_sent=sent)

    async def _handle_unknown(self, sender: "Connection", event: Unknown) -> RoutingResult:
        logger.debug("Unknown event, forwarding", connection_id=sender.id, event=event.name)
        sent = await self._broadcaster.broadcast(event.raw, sender=sender)
        return RoutingResult(event_name=event.name, broadcast_sent=sent)

    async def _handle_forward(self, sender: "Connection", event: Event) -> RoutingResult:
        # Server-originated variants arriving from a client are relayed like unknown traffic
        sent = await self._broadcaster.broadcast(encode(event), sender=sender)
        return RoutingResult(event_name=event.name, broadcast_sent=sent)
