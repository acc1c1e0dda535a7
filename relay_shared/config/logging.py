"""
Structured logging for the relay.

Production emits one JSON object per line; development emits coloured,
human-readable lines. Both carry the id of the connection being served
(see ``relay_shared.infrastructure.correlation``).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from relay_shared.config.settings import settings
from relay_shared.infrastructure.correlation import ConnectionIdFilter

SERVICE_NAME = "chat-relay"


def _record_connection_id(record: logging.LogRecord) -> str | None:
    connection_id = getattr(record, "connection_id", None)
    if connection_id and connection_id != "-":
        return connection_id
    return None


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for log aggregation.

    Fields: timestamp, level, service, logger, message, and when present
    connection_id, data (structured kwargs), exception and source.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }

        connection_id = _record_connection_id(record)
        if connection_id:
            log_data["connection_id"] = connection_id

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data["data"] = extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if settings.debug:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    DIM = "\033[2m"
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        connection_id = _record_connection_id(record)
        conn = f"{self.DIM}[{connection_id}]{self.RESET} " if connection_id else ""

        message = (
            f"{color}[{timestamp}] {record.levelname:8}{self.RESET} "
            f"{conn}{record.name}: {record.getMessage()}"
        )

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            message += " (" + " | ".join(f"{k}={v}" for k, v in extra_data.items()) + ")"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


class StructuredLogger(logging.Logger):
    """
    Logger whose level methods accept arbitrary keyword fields.

    ``logger.info("Client connected", connection_id="c1")`` stores the
    keywords in ``record.extra_data`` for the formatters.
    """

    def _log_with_data(
        self,
        level: int,
        msg: str,
        args: tuple,
        exc_info: Any = None,
        extra: dict | None = None,
        **kwargs: Any,
    ) -> None:
        if not self.isEnabledFor(level):
            return
        extra = dict(extra or {})
        extra["extra_data"] = kwargs or None
        super()._log(level, msg, args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.DEBUG, msg, args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.INFO, msg, args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log_with_data(logging.WARNING, msg, args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._log_with_data(logging.ERROR, msg, args, exc_info=exc_info, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        self._log_with_data(logging.CRITICAL, msg, args, exc_info=exc_info, **kwargs)


logging.setLoggerClass(StructuredLogger)


def resolve_log_level(level: str | None = None) -> int:
    """
    ``level`` or LOG_LEVEL by name; otherwise DEBUG in debug mode, INFO else.
    Unknown names fall back to INFO.
    """
    name = (level or settings.log_level or "").upper()
    if not name:
        return logging.DEBUG if settings.debug else logging.INFO
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: str | None = None) -> None:
    """
    Configure the root logger. Call once at startup.

    JSON output in production, coloured output everywhere else.
    """
    log_level = resolve_log_level(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(ConnectionIdFilter())
    if settings.environment == "production":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(handler)

    # Quiet third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("websockets").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger.

    Usage:
        from relay_shared.config.logging import get_logger
        logger = get_logger(__name__)

        logger.info("Client connected", connection_id="c1a2b3")
        logger.error("Broadcast failed", recipients=3, exc_info=True)
    """
    return logging.getLogger(name)  # type: ignore


relay_gateway_logger = get_logger("relay_gateway")
security_audit_logger = get_logger("security.audit")


def audit_ws_connection(
    event_type: str,
    endpoint: str,
    connection_id: str | None = None,
    client: str | None = None,
    origin: str | None = None,
    reason: str | None = None,
    **extra: Any,
) -> None:
    """
    Audit line for a WebSocket lifecycle event.

    Args:
        event_type: CONNECT, DISCONNECT, CONNECT_REJECTED, ...
        endpoint: WebSocket path
        connection_id: Server-assigned connection id
        client: Remote address as "host:port"
        origin: Origin header value
        reason: Why the event happened, for failures and disconnects
        **extra: Additional context data
    """
    security_audit_logger.info(
        f"WS_AUDIT: {event_type}",
        event_type=event_type,
        endpoint=endpoint,
        connection_id=connection_id,
        client=client,
        origin=origin,
        reason=reason,
        **extra,
    )
