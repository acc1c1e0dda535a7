"""
Relay Gateway Constants.

Wire-level event names, close codes and operational defaults.
"""

from enum import IntEnum
from typing import Final

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
]


class WSCloseCode(IntEnum):
    """
    WebSocket close codes used by the gateway.

    Standard codes (1000-1999) from RFC 6455.
    """

    NORMAL = 1000  # Normal closure
    GOING_AWAY = 1001  # Server shutting down or client navigating away
    SERVER_ERROR = 1011  # Unexpected server error
    SERVER_OVERLOADED = 1013  # Server overloaded, try again later


class WSConstants:
    """
    Gateway operational constants.

    These are defaults used when settings are not supplied. At runtime the
    ConnectionManager reads ``relay_shared.config.settings`` which can
    override them via environment variables.
    """

    # WebSocket handshake should complete within TCP timeout.
    WS_ACCEPT_TIMEOUT: Final[float] = 5.0

    # Per-recipient send timeout.
    WS_SEND_TIMEOUT: Final[float] = 5.0

    # Connections sent to concurrently within one broadcast batch.
    BROADCAST_BATCH_SIZE: Final[int] = 50

    # Length of client data included in log lines.
    LOG_SNIPPET_LENGTH: Final[int] = 100


# Event discriminators carried in the "event" field of every frame
EVENT_PING: Final[str] = "ping"
EVENT_PONG: Final[str] = "pong"
EVENT_MESSAGE_SEND: Final[str] = "message.send"
EVENT_MESSAGE_ACK: Final[str] = "message.ack"
EVENT_MESSAGE_NEW: Final[str] = "message.new"
EVENT_PRESENCE_UPDATE: Final[str] = "presence.update"

# The only acknowledgment status the relay issues
STATUS_SENT: Final[str] = "sent"
