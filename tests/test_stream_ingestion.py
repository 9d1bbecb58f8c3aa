from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pylivetrack.ingestion.stream import build_event_from_location
from pylivetrack.ingestion.tracked_users import build_events_from_tracked_users
from pylivetrack.models.geo import Coordinate
from pylivetrack.state.events import IngestionSource


def test_new_location_becomes_entity_update() -> None:
    payload = {
        "event": "newLocation",
        "userId": "u42",
        "username": "asha",
        "coords": {"latitude": 28.61, "longitude": 77.20},
        "timestamp": 1771000000000,
    }

    event = build_event_from_location(payload, local_user_id="me")

    assert event is not None
    assert event.source == IngestionSource.STREAM
    assert event.entity.id == "u42"
    assert event.entity.username == "asha"
    assert event.entity.coordinate == Coordinate(latitude=28.61, longitude=77.20)
    assert event.entity.last_updated == datetime.fromtimestamp(1771000000, tz=UTC)


def test_payload_without_event_name_is_treated_as_location() -> None:
    payload = {"userId": 7, "username": None, "coords": {"latitude": 1, "longitude": 2}}

    event = build_event_from_location(payload, local_user_id=None)

    assert event is not None
    assert event.entity.id == "7"
    assert event.entity.username == ""
    assert event.entity.last_updated.tzinfo is not None


def test_own_echo_is_ignored() -> None:
    payload = {"event": "locationUpdate", "userId": "me", "coords": {"latitude": 1, "longitude": 2}}

    assert build_event_from_location(payload, local_user_id="me") is None


@pytest.mark.parametrize(
    "payload",
    [
        {"event": "chat", "userId": "u1", "coords": {"latitude": 1, "longitude": 2}},
        {"event": "newLocation", "coords": {"latitude": 1, "longitude": 2}},
        {"event": "newLocation", "userId": "  ", "coords": {"latitude": 1, "longitude": 2}},
        {"event": "newLocation", "userId": "u1"},
        {"event": "newLocation", "userId": "u1", "coords": {"latitude": 95, "longitude": 2}},
    ],
)
def test_unusable_payloads_are_dropped(payload: dict[str, object]) -> None:
    assert build_event_from_location(payload, local_user_id="me") is None


def test_tracked_users_response_is_filtered() -> None:
    records = [
        {"_id": "u1", "username": "asha", "lastKnownLocation": {"type": "Point", "coordinates": [77.2, 28.61]}},
        {"_id": "me", "username": "self", "lastKnownLocation": {"coordinates": [77.1, 28.7]}},
        {"_id": "u2", "username": "no-location"},
        {"_id": "u3", "lastKnownLocation": {"coordinates": [77.1]}},
        {"_id": "u4", "lastKnownLocation": {"coordinates": ["a", "b"]}},
        {"username": "no-id", "lastKnownLocation": {"coordinates": [77.1, 28.7]}},
        "garbage",
    ]

    events = build_events_from_tracked_users(records, local_user_id="me")

    assert [e.entity.id for e in events] == ["u1"]
    assert events[0].source == IngestionSource.HTTP
    assert events[0].entity.coordinate == Coordinate(latitude=28.61, longitude=77.2)


def test_tracked_users_non_list_response() -> None:
    assert build_events_from_tracked_users({"error": "x"}, local_user_id="me") == []
