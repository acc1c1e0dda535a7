"""
Server-side message id generation.

Ids combine the wall clock in milliseconds with a process-wide sequence
number, so two messages accepted in the same millisecond still get
distinct ids. Uniqueness holds for one process; ids are not coordinated
across restarts or nodes.
"""

from __future__ import annotations

import itertools
import threading
import time
from typing import Callable


class ServerIdGenerator:
    """
    Thread-safe generator of ``<prefix><millis>_<sequence>`` ids.

    Usage:
        ids = ServerIdGenerator(prefix="srv_")
        ids.next_id()  # "srv_1760871234567_1"
    """

    def __init__(
        self,
        prefix: str = "srv_",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._prefix = prefix
        self._clock = clock
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def prefix(self) -> str:
        return self._prefix

    def next_id(self) -> str:
        """Return a new id, never equal to one returned before."""
        with self._lock:
            seq = next(self._counter)
            millis = int(self._clock() * 1000)
        return f"{self._prefix}{millis}_{seq}"
