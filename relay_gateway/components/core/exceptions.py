"""
Relay error taxonomy.

None of these are process-fatal: DecodeError drops one frame,
TransportError ends one connection, DeliveryError loses one send.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for relay errors."""


class DecodeError(RelayError):
    """A frame could not be parsed into an event."""

    def __init__(self, message: str, frame: str | bytes | None = None) -> None:
        super().__init__(message)
        self.frame = frame


class TransportError(RelayError):
    """The underlying channel of a connection is broken."""

    def __init__(self, message: str, connection_id: str | None = None) -> None:
        super().__init__(message)
        self.connection_id = connection_id


class DeliveryError(RelayError):
    """Sending a frame to one recipient failed."""

    def __init__(self, message: str, connection_id: str | None = None) -> None:
        super().__init__(message)
        self.connection_id = connection_id
