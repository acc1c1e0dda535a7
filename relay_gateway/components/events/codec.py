"""
Event Codec - frames to events and back.

Inbound frames are JSON objects of the form
``{"event": "<name>", "data": {...}}``. Only ``ping``, ``message.send``
and ``presence.update`` are interpreted; any other name decodes to
``Unknown`` so the router can forward it untouched.

Usage:
    event = decode('{"event": "ping"}')
    frame = encode(Pong())  # '{"event":"pong","data":{}}'
"""

from __future__ import annotations

import json
import math
from typing import Any

from relay_gateway.components.core.constants import (
    EVENT_PING,
    EVENT_MESSAGE_SEND,
    EVENT_PRESENCE_UPDATE,
)
from relay_gateway.components.core.exceptions import DecodeError
from relay_gateway.components.events.types import (
    Event,
    MessageSend,
    Ping,
    PresenceUpdate,
    Unknown,
)

# Compact separators give one canonical encoding per event
_SEPARATORS = (",", ":")


def _as_text(frame: str | bytes) -> str:
    if isinstance(frame, bytes):
        try:
            return frame.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError("Frame is not valid UTF-8", frame=frame) from e
    return frame


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a JSON value")


def _parse_finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise ValueError(f"{literal} overflows a double")
    return value


def _parse_record(text: str) -> dict[str, Any]:
    # Strict JSON only: NaN, Infinity and numbers overflowing a double are rejected
    try:
        record = json.loads(
            text,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except json.JSONDecodeError as e:
        raise DecodeError(f"Frame is not valid JSON: {e.msg}", frame=text) from e
    except (ValueError, RecursionError) as e:
        raise DecodeError(f"Frame is not valid JSON: {e}", frame=text) from e
    if not isinstance(record, dict):
        raise DecodeError("Frame is not a JSON object", frame=text)
    return record


def decode(frame: str | bytes) -> Event:
    """
    Decode one inbound frame.

    Raises:
        DecodeError: If the frame is not a JSON object with a string
            ``event`` field, or a ``message.send`` carries a non-object
            ``data``.
    """
    text = _as_text(frame)
    record = _parse_record(text)

    name = record.get("event")
    if not isinstance(name, str):
        raise DecodeError("Frame has no string 'event' field", frame=text)

    if name == EVENT_PING:
        return Ping()

    if name == EVENT_MESSAGE_SEND:
        data = record.get("data")
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise DecodeError("message.send 'data' must be an object", frame=text)
        return MessageSend(temp_id=data.get("tempId"), body=data)

    if name == EVENT_PRESENCE_UPDATE:
        data = record.get("data")
        return PresenceUpdate(data={} if data is None else data)

    return Unknown(event_name=name, raw=frame)


def encode(event: Event) -> str | bytes:
    """
    Encode an event as a text frame.

    ``Unknown`` events encode to their original frame, byte for byte and
    of the same type: a binary frame stays binary.
    """
    if isinstance(event, Unknown):
        return event.raw
    return json.dumps(
        event.to_frame(),
        separators=_SEPARATORS,
        ensure_ascii=False,
        allow_nan=False,
    )
