"""
Tests for presence record updates.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from relay_shared.integrations.presence import (
    InMemoryPresenceStore,
    PresenceRecorder,
    should_update_presence,
)

NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


class TestShouldUpdatePresence:

    @pytest.mark.parametrize(
        "is_online,incoming,current,expected",
        [
            (True, None, "2026-10-19T10:00:00Z", True),
            (True, "2020-01-01T00:00:00Z", "2026-10-19T10:00:00Z", True),
            (False, "2026-10-19T10:00:00Z", None, True),
            (False, None, None, True),
            (False, None, "2026-10-19T10:00:00Z", False),
            (False, "2026-10-19T11:00:00Z", "2026-10-19T10:00:00Z", True),
            (False, "2026-10-19T09:00:00Z", "2026-10-19T10:00:00Z", False),
            (False, "2026-10-19T10:00:00Z", "2026-10-19T10:00:00Z", False),
        ],
    )
    def test_rule(self, is_online, incoming, current, expected):
        assert should_update_presence(is_online, incoming, current) is expected


class TestPresenceRecorder:

    @pytest.mark.asyncio
    async def test_creates_record_when_missing(self):
        store = InMemoryPresenceStore()
        recorder = PresenceRecorder(store, clock=lambda: NOW)

        assert await recorder.apply("u1", {"isOnline": True}) is True
        assert store.records["u1"] == {"isOnline": True, "lastSeen": NOW.isoformat()}

    @pytest.mark.asyncio
    async def test_stale_offline_update_is_ignored(self):
        store = InMemoryPresenceStore()
        store.records["u1"] = {"isOnline": True, "lastSeen": "2026-10-19T10:00:00+00:00"}
        recorder = PresenceRecorder(store, clock=lambda: NOW)

        written = await recorder.apply(
            "u1", {"isOnline": False, "lastSeen": "2026-10-19T09:00:00+00:00"}
        )

        assert written is False
        assert store.records["u1"]["isOnline"] is True

    @pytest.mark.asyncio
    async def test_newer_offline_update_is_applied(self):
        store = InMemoryPresenceStore()
        store.records["u1"] = {"isOnline": True, "lastSeen": "2026-10-19T08:00:00+00:00"}
        recorder = PresenceRecorder(store, clock=lambda: NOW)

        written = await recorder.apply(
            "u1", {"isOnline": False, "lastSeen": "2026-10-19T09:00:00+00:00"}
        )

        assert written is True
        assert store.records["u1"] == {"isOnline": False, "lastSeen": NOW.isoformat()}

    @pytest.mark.asyncio
    async def test_store_failure_is_logged_not_raised(self):
        store = AsyncMock()
        store.get.side_effect = RuntimeError("store unavailable")
        recorder = PresenceRecorder(store, clock=lambda: NOW)

        assert await recorder.apply("u1", {"isOnline": True}) is False
        store.set.assert_not_awaited()
