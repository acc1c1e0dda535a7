"""
Presence Store Trigger.

Applies online/offline status changes to a durable user record. The
rule is last-writer-wins, biased towards online: an update is applied
when the user comes online, when there is no previous ``lastSeen``, or
when the incoming ``lastSeen`` is strictly later than the stored one.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from relay_shared.config.logging import get_logger

logger = get_logger(__name__)


class PresenceStore(Protocol):
    """Durable user records keyed by user id."""

    async def get(self, user_id: str) -> dict[str, Any] | None: ...

    async def set(self, user_id: str, record: dict[str, Any]) -> None: ...

    async def update(self, user_id: str, fields: dict[str, Any]) -> None: ...


def should_update_presence(
    is_online: bool,
    incoming_last_seen: Any,
    current_last_seen: Any,
) -> bool:
    """
    Decide whether a status change overwrites the stored record.

    ``lastSeen`` values are compared as strings, which orders ISO-8601
    timestamps and fixed-width epoch values correctly.
    """
    if is_online:
        return True
    if current_last_seen is None:
        return True
    if incoming_last_seen is None:
        return False
    return str(incoming_last_seen) > str(current_last_seen)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PresenceRecorder:
    """
    Writes presence changes through a PresenceStore.

    Usage:
        recorder = PresenceRecorder(store)
        await recorder.apply("u1", {"isOnline": False, "lastSeen": "2026-10-19T10:00:00Z"})
    """

    def __init__(
        self,
        store: PresenceStore,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    async def apply(self, user_id: str, status: dict[str, Any]) -> bool:
        """
        Apply one status change.

        Returns:
            True if the record was written, False if it was stale or the
            store failed.
        """
        is_online = bool(status.get("isOnline"))
        fields = {"isOnline": is_online, "lastSeen": self._clock().isoformat()}

        try:
            current = await self._store.get(user_id)
            if current is None:
                await self._store.set(user_id, fields)
                written = True
            elif should_update_presence(
                is_online, status.get("lastSeen"), current.get("lastSeen")
            ):
                await self._store.update(user_id, fields)
                written = True
            else:
                written = False
        except Exception as e:
            logger.error(
                "Error updating user status",
                user_id=user_id,
                error=str(e),
                exc_info=True,
            )
            return False

        logger.info("User status processed", user_id=user_id, written=written)
        return written


class InMemoryPresenceStore:
    """PresenceStore kept in a dict, for local runs and tests."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}

    async def get(self, user_id: str) -> dict[str, Any] | None:
        record = self.records.get(user_id)
        return dict(record) if record is not None else None

    async def set(self, user_id: str, record: dict[str, Any]) -> None:
        self.records[user_id] = dict(record)

    async def update(self, user_id: str, fields: dict[str, Any]) -> None:
        self.records.setdefault(user_id, {}).update(fields)
