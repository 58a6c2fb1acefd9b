"""
Integration tests for calendar events.
"""

from datetime import datetime

import pytest

from api.calendar_events import month_range
from tests.conftest import TEST_USER_ID


def add_event(client, **overrides):
    payload = {
        "title": "Weigh-in",
        "description": "Morning, before breakfast",
        "date": "2024-03-15",
        "time": "07:30",
        "category": "personal",
    }
    payload.update(overrides)
    return client.post("/api/calendar", json=payload)


def test_month_range_spans_whole_month():
    start, end = month_range(2024, 2)
    assert start == datetime(2024, 2, 1, 0, 0, 0)
    assert end == datetime(2024, 2, 29, 23, 59, 59)


@pytest.mark.parametrize("year, month", [(2024, 0), (2024, 13), (0, 5)])
def test_month_range_rejects_bad_months(year, month):
    with pytest.raises(ValueError):
        month_range(year, month)


def test_create_event(client, store):
    response = add_event(client)

    assert response.status_code == 200
    data = response.json()
    assert data["timestamp"] == "2024-03-15T07:30:00"
    assert data["category"] == "personal"
    assert store.events[0]["user_id"] == TEST_USER_ID


def test_create_event_defaults(client):
    response = client.post("/api/calendar", json={"title": "Doctor", "date": "2024-03-20"})

    assert response.status_code == 200
    assert response.json()["time"] == "12:00"
    assert response.json()["category"] == "work"


@pytest.mark.parametrize(
    "overrides",
    [{"title": ""}, {"category": "party"}, {"date": "15/03/2024"}, {"time": "7:30"}],
)
def test_create_event_validation(client, overrides):
    assert add_event(client, **overrides).status_code == 422


def test_create_event_with_impossible_date(client):
    assert add_event(client, date="2024-02-30").status_code == 400


def test_month_listing_is_ordered_and_bounded(client):
    add_event(client, title="Late", date="2024-03-31", time="23:59")
    add_event(client, title="Early", date="2024-03-01", time="00:00")
    add_event(client, title="Next month", date="2024-04-01", time="00:00")
    add_event(client, title="Middle", date="2024-03-15", time="12:00")

    response = client.get("/api/calendar/2024/3")

    assert response.status_code == 200
    assert [e["title"] for e in response.json()["events"]] == ["Early", "Middle", "Late"]


def test_month_listing_rejects_bad_month(client):
    assert client.get("/api/calendar/2024/13").status_code == 400


def test_delete_event(client, store):
    event_id = add_event(client).json()["id"]

    assert client.delete(f"/api/calendar/{event_id}").status_code == 200
    assert store.events == []
    assert client.delete(f"/api/calendar/{event_id}").status_code == 404
