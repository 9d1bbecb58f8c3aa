from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from pylivetrack.models.entity import TrackedEntity
from pylivetrack.models.geo import Coordinate
from pylivetrack.state.events import EntityRemoved, EntityUpdate, IngestionSource
from pylivetrack.state.store import TrackedEntityStore


def _dt(seconds: int = 0) -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC) + timedelta(seconds=seconds)


def _entity(entity_id: str, lat: float, lng: float, *, at: int = 0, username: str = "") -> TrackedEntity:
    return TrackedEntity(
        id=entity_id,
        username=username or entity_id,
        coordinate=Coordinate(latitude=lat, longitude=lng),
        last_updated=_dt(at),
    )


def test_later_upsert_fully_replaces_entry() -> None:
    store = TrackedEntityStore()
    e1 = _entity("u1", 28.7, 77.1, at=10, username="first")
    e2 = _entity("u1", 28.6, 77.2, at=5, username="second")

    store.upsert("u1", e1)
    store.upsert("u1", e2)

    assert len(store) == 1
    # Last writer wins even though e2 carries an older timestamp.
    assert store.get("u1") == e2


def test_snapshot_is_ordered_by_id_and_detached() -> None:
    store = TrackedEntityStore()
    for entity_id in ("zeta", "alpha", "mid"):
        store.upsert(entity_id, _entity(entity_id, 20.0, 75.0))

    snapshot = store.snapshot()
    assert list(snapshot) == ["alpha", "mid", "zeta"]
    assert list(store) == ["alpha", "mid", "zeta"]

    store.remove("alpha")
    assert "alpha" in snapshot
    assert "alpha" not in store


def test_remove_reports_presence() -> None:
    store = TrackedEntityStore()
    store.upsert("u1", _entity("u1", 1.0, 1.0))

    assert store.remove("u1") is True
    assert store.remove("u1") is False
    assert store.snapshot() == {}


def test_upsert_rejects_mismatched_key() -> None:
    store = TrackedEntityStore()
    with pytest.raises(ValueError):
        store.upsert("u2", _entity("u1", 1.0, 1.0))


def test_apply_duplicate_delivery_is_idempotent() -> None:
    store = TrackedEntityStore()
    event = EntityUpdate(entity=_entity("u1", 28.7, 77.1), source=IngestionSource.STREAM)

    assert store.apply(event) is True
    assert store.apply(event) is True
    assert store.snapshot() == {"u1": event.entity}

    assert store.apply(EntityRemoved(entity_id="u1")) is True
    assert store.apply(EntityRemoved(entity_id="u1")) is False


def test_expired_lists_entities_older_than_ttl() -> None:
    store = TrackedEntityStore()
    store.upsert("old", _entity("old", 1.0, 1.0, at=0))
    store.upsert("fresh", _entity("fresh", 1.0, 1.0, at=90))

    assert store.expired(_dt(100), timedelta(seconds=30)) == ["old"]
    assert store.expired(_dt(100), timedelta(seconds=200)) == []


def test_clear_empties_store() -> None:
    store = TrackedEntityStore()
    store.upsert("u1", _entity("u1", 1.0, 1.0))
    store.clear()
    assert len(store) == 0
