"""
Event Value Objects for the relay.

One immutable dataclass per event variant. Message and presence bodies
are kept as plain JSON-like mappings and forwarded verbatim; the relay
only adds its own fields to ``message.new``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Union

from relay_gateway.components.core.constants import (
    EVENT_PING,
    EVENT_PONG,
    EVENT_MESSAGE_SEND,
    EVENT_MESSAGE_ACK,
    EVENT_MESSAGE_NEW,
    EVENT_PRESENCE_UPDATE,
    STATUS_SENT,
)


def isoformat_millis(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


@dataclass(frozen=True, slots=True)
class Ping:
    """Client liveness check."""

    name: ClassVar[str] = EVENT_PING

    def to_frame(self) -> dict[str, Any]:
        return {"event": self.name, "data": {}}


@dataclass(frozen=True, slots=True)
class Pong:
    """Reply to a Ping."""

    name: ClassVar[str] = EVENT_PONG

    def to_frame(self) -> dict[str, Any]:
        return {"event": self.name, "data": {}}


@dataclass(frozen=True, slots=True)
class MessageSend:
    """
    A chat message submitted by a client.

    Attributes:
        temp_id: Client-generated correlation id, echoed in the ack.
        body: The whole ``data`` mapping as sent, tempId included.
    """

    name: ClassVar[str] = EVENT_MESSAGE_SEND

    temp_id: Any
    body: dict[str, Any] = field(default_factory=dict)

    def to_frame(self) -> dict[str, Any]:
        return {"event": self.name, "data": copy.deepcopy(self.body)}


@dataclass(frozen=True, slots=True)
class MessageAck:
    """Acknowledgment sent back to the author of a MessageSend."""

    name: ClassVar[str] = EVENT_MESSAGE_ACK

    temp_id: Any
    server_id: str
    status: str = STATUS_SENT

    def to_frame(self) -> dict[str, Any]:
        return {
            "event": self.name,
            "data": {
                "tempId": self.temp_id,
                "serverId": self.server_id,
                "status": self.status,
            },
        }


@dataclass(frozen=True, slots=True)
class MessageNew:
    """
    A message as broadcast to every connection.

    ``body`` holds the original message fields plus the injected
    ``serverId``, ``id``, ``createdAt`` and ``timestamp``.
    """

    name: ClassVar[str] = EVENT_MESSAGE_NEW

    body: dict[str, Any]

    @classmethod
    def from_send(
        cls,
        send: MessageSend,
        server_id: str,
        now: datetime | None = None,
    ) -> "MessageNew":
        """Build the broadcast copy of ``send``, stamped with ``server_id``."""
        now = now or datetime.now(timezone.utc)
        body = copy.deepcopy(send.body)
        body.update({
            "serverId": server_id,
            "id": server_id,
            "createdAt": isoformat_millis(now),
            "timestamp": int(now.timestamp() * 1000),
        })
        return cls(body=body)

    @property
    def server_id(self) -> str:
        return self.body["serverId"]

    def to_frame(self) -> dict[str, Any]:
        return {"event": self.name, "data": copy.deepcopy(self.body)}


@dataclass(frozen=True, slots=True)
class PresenceUpdate:
    """Online/offline status change, forwarded unchanged."""

    name: ClassVar[str] = EVENT_PRESENCE_UPDATE

    data: Any = field(default_factory=dict)

    def to_frame(self) -> dict[str, Any]:
        return {"event": self.name, "data": copy.deepcopy(self.data)}


@dataclass(frozen=True, slots=True)
class Unknown:
    """
    Any frame with an unrecognized event name.

    ``raw`` is the frame exactly as received, ``str`` for a text frame and
    ``bytes`` for a binary one; it is rebroadcast as is.
    """

    event_name: str
    raw: str | bytes = field(repr=False)

    @property
    def name(self) -> str:
        return self.event_name


Event = Union[Ping, Pong, MessageSend, MessageAck, MessageNew, PresenceUpdate, Unknown]
