"""
Connection Correlation.

Tags every log line emitted while serving a WebSocket with the id of
that connection, so one client's session can be followed through the
logs of the registry, router and broadcaster.

Each connection is served by its own task, and a ContextVar set inside
that task is only visible there.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

# Connection currently being served by this task ("" outside a connection)
connection_id_var: ContextVar[str] = ContextVar("connection_id", default="")


def get_connection_id() -> str:
    """Get the id of the connection served by the current task."""
    return connection_id_var.get()


@contextmanager
def bind_connection_id(connection_id: str | None) -> Iterator[None]:
    """
    Attach ``connection_id`` to log records for the duration of the block.

    Usage:
        with bind_connection_id(connection.id):
            await message_loop()
    """
    token = connection_id_var.set(connection_id or "")
    try:
        yield
    finally:
        connection_id_var.reset(token)


class ConnectionIdFilter(logging.Filter):
    """
    Logging filter that adds ``connection_id`` to log records.

    Usage:
        handler = logging.StreamHandler()
        handler.addFilter(ConnectionIdFilter())
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.connection_id = connection_id_var.get() or "-"
        return True
