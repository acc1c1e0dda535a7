"""
WebSocket Context for audit logging.

Encapsulates connection metadata for consistent audit logging.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

from relay_shared.config.logging import audit_ws_connection

if TYPE_CHECKING:
    from fastapi import WebSocket


# ASCII control characters, zero-width marks and bidi overrides
_CONTROL_CHAR_PATTERN = re.compile(
    r'[\x00-\x1f\x7f-\x9f'
    r'\u200b-\u200f'
    r'\u202a-\u202e'
    r'\u2066-\u2069'
    r'\ufeff]'
)


def sanitize_log_data(data: str | bytes, max_length: int = 100) -> str:
    """
    Sanitize client-provided data before logging.

    Truncates first so escaping cannot change where the cut lands, then
    removes control characters and escapes quotes and backslashes.

    Args:
        data: Raw frame data.
        max_length: Maximum length to include in logs.

    Returns:
        Sanitized, truncated string safe for structured logging.
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")

    was_truncated = len(data) > max_length
    truncated = data[:max_length] if was_truncated else data

    sanitized = _CONTROL_CHAR_PATTERN.sub('', truncated)
    sanitized = sanitized.replace('\\', '\\\\')
    sanitized = sanitized.replace('"', '\\"')

    if was_truncated:
        return sanitized + "..."
    return sanitized


def describe_client(websocket: "WebSocket") -> str | None:
    """Return ``host:port`` of the remote peer, if known."""
    client = getattr(websocket, "client", None)
    if client is None:
        return None
    return f"{client.host}:{client.port}"


@dataclass
class WebSocketContext:
    """
    Context object for WebSocket connection metadata.

    Usage:
        ctx = WebSocketContext.from_websocket(websocket, "/ws")
        ctx.connection_id = connection.id
        ctx.audit("CONNECT")
    """

    endpoint: str
    connection_id: str | None = None
    client: str | None = None
    origin: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_websocket(cls, websocket: "WebSocket", endpoint: str) -> "WebSocketContext":
        headers = getattr(websocket, "headers", None) or {}
        return cls(
            endpoint=endpoint,
            client=describe_client(websocket),
            origin=headers.get("origin"),
        )

    @property
    def identifier(self) -> str:
        """Short identifier used in log lines."""
        return self.connection_id or "unregistered"

    def to_audit_dict(self, event_type: str, **kwargs: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "event_type": event_type,
            "endpoint": self.endpoint,
            "connection_id": self.connection_id,
            "client": self.client,
            "origin": self.origin,
        }
        data.update(self.extra)
        data.update(kwargs)
        return data

    def audit(self, event_type: str, reason: str | None = None, **kwargs: Any) -> None:
        audit_ws_connection(
            event_type=event_type,
            endpoint=self.endpoint,
            connection_id=self.connection_id,
            client=self.client,
            origin=self.origin,
            reason=reason,
            **self.extra,
            **kwargs,
        )
