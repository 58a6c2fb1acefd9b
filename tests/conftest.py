"""
Shared pytest fixtures.

The Supabase store and Firebase auth are replaced by an in-memory fake and a
fixed user id, so nothing here talks to the network.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from utils.timezone_utils import parse_legacy_id, to_storage_string, to_wall_clock

TEST_USER_ID = "user-1"


class InMemoryStore:
    """Stand-in for SupabaseService with the same async methods."""

    def __init__(self):
        self.measurements: List[Dict[str, Any]] = []
        self.events: List[Dict[str, Any]] = []
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.fail_with: Optional[Exception] = None
        self.delays: List[float] = []
        self.query_calls: List[Dict[str, Any]] = []
        self._subscribers: List[asyncio.Queue] = []

    # helpers used by tests
    def add_measurement(self, user_id: str, metric: str, **row) -> Dict[str, Any]:
        row = dict(row, user_id=user_id, metric=metric)
        row.setdefault("id", str(uuid.uuid4()))
        self.measurements.append(row)
        for queue in self._subscribers:
            queue.put_nowait(row["id"])
        return row

    @staticmethod
    def _instant(row: Dict[str, Any]) -> Optional[datetime]:
        explicit = row.get("captured_at", row.get("timestamp"))
        return to_wall_clock(explicit) or parse_legacy_id(row.get("id"))

    # measurement store interface
    async def query_measurements(self, user_id, metric, start=None, end=None, limit=10):
        self.query_calls.append(
            {"user_id": user_id, "metric": metric, "start": start, "end": end, "limit": limit}
        )
        if self.delays:
            await asyncio.sleep(self.delays.pop(0))
        if self.fail_with is not None:
            raise self.fail_with

        resolved, unresolved = [], []
        for row in self.measurements:
            if row["user_id"] != user_id or row["metric"] != metric:
                continue
            instant = self._instant(row)
            if instant is None:
                if start is None and end is None:
                    unresolved.append(row)
                continue
            if start is not None and instant < start:
                continue
            if end is not None and instant > end:
                continue
            resolved.append((instant, row))

        resolved.sort(key=lambda pair: pair[0], reverse=True)
        return [dict(row) for _, row in resolved[:limit]] + [dict(row) for row in unresolved[:limit]]

    async def watch_measurements(self, user_id, metric):
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)

        async def changes():
            while True:
                yield await queue.get()

        return changes()

    async def create_measurement(self, user_id, metric, value, captured_at):
        if self.fail_with is not None:
            raise self.fail_with
        return self.add_measurement(
            user_id,
            metric,
            value=value,
            captured_at=to_storage_string(captured_at),
            recorded_at="2024-03-10T12:00:00+00:00",
        )

    async def delete_measurement(self, user_id, metric, measurement_id):
        before = len(self.measurements)
        self.measurements = [
            row for row in self.measurements
            if not (row["user_id"] == user_id and row["metric"] == metric and row["id"] == measurement_id)
        ]
        return len(self.measurements) < before

    # calendar
    async def get_calendar_events(self, user_id, start, end):
        if self.fail_with is not None:
            raise self.fail_with
        lower, upper = to_storage_string(start), to_storage_string(end)
        events = [
            dict(e) for e in self.events
            if e["user_id"] == user_id and lower <= e["timestamp"] <= upper
        ]
        return sorted(events, key=lambda e: e["timestamp"])

    async def create_calendar_event(self, event_data):
        event = dict(event_data)
        event.setdefault("id", str(uuid.uuid4()))
        event["created_at"] = "2024-03-10T12:00:00+00:00"
        self.events.append(event)
        return dict(event)

    async def delete_calendar_event(self, user_id, event_id):
        before = len(self.events)
        self.events = [e for e in self.events if not (e["user_id"] == user_id and e["id"] == event_id)]
        return len(self.events) < before

    # profile
    async def get_profile(self, user_id):
        if self.fail_with is not None:
            raise self.fail_with
        profile = self.profiles.get(user_id)
        return dict(profile) if profile else None

    async def upsert_profile(self, user_id, update_data):
        profile = self.profiles.setdefault(user_id, {"id": user_id})
        profile.update(update_data)
        profile["updated_at"] = "2024-03-10T12:00:00+00:00"
        return dict(profile)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 10, 12, 0)


@pytest.fixture
def client(store):
    from main import app
    from api.calendar_events import get_calendar_store
    from api.measurements import get_measurement_store
    from api.profile import get_profile_store
    from services.auth_service import get_current_user_id

    app.dependency_overrides[get_current_user_id] = lambda: TEST_USER_ID
    app.dependency_overrides[get_measurement_store] = lambda: store
    app.dependency_overrides[get_calendar_store] = lambda: store
    app.dependency_overrides[get_profile_store] = lambda: store

    yield TestClient(app)

    app.dependency_overrides.clear()
