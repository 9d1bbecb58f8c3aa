"""Backend tracked-users ingestion.

Records look like::

    {"_id": "u1", "username": "asha",
     "lastKnownLocation": {"type": "Point", "coordinates": [77.2, 28.6]}}
"""

from __future__ import annotations

from typing import Any

from pylivetrack.ingestion.normalize import coordinate_from_lng_lat, safe_str
from pylivetrack.models.entity import TrackedEntity
from pylivetrack.state.events import EntityUpdate, IngestionSource


def build_events_from_tracked_users(
    records: Any,
    *,
    local_user_id: str | None,
) -> list[EntityUpdate]:
    """Turn the tracked-users response into entity updates.

    Records without an id, without a two-element location or belonging
    to the local user are skipped.
    """
    if not isinstance(records, list):
        return []

    events: list[EntityUpdate] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        entity_id = safe_str(record.get("_id") or record.get("id"))
        if entity_id is None or entity_id == local_user_id:
            continue
        location = record.get("lastKnownLocation")
        coordinate = coordinate_from_lng_lat(location.get("coordinates")) if isinstance(location, dict) else None
        if coordinate is None:
            continue
        events.append(
            EntityUpdate(
                entity=TrackedEntity(
                    id=entity_id,
                    username=safe_str(record.get("username")) or "",
                    coordinate=coordinate,
                ),
                source=IngestionSource.HTTP,
            )
        )
    return events
