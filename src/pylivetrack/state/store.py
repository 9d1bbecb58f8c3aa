"""Deterministic in-memory store of tracked entities.

Merge semantics are deliberately simple: an update for an id replaces
the previous entry wholesale (last writer wins, regardless of
timestamps). Callers that need staleness rejection filter first.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta

from pylivetrack.models.entity import TrackedEntity
from pylivetrack.state.events import EntityRemoved, EntityUpdate


class TrackedEntityStore:
    """Mapping of entity id to its last-known state.

    Iteration and :meth:`snapshot` are ordered by id so that the same
    contents always produce the same waypoint list.
    """

    def __init__(self) -> None:
        self._entities: dict[str, TrackedEntity] = {}

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entities))

    def get(self, entity_id: str) -> TrackedEntity | None:
        return self._entities.get(entity_id)

    def upsert(self, entity_id: str, entity: TrackedEntity) -> None:
        """Insert or fully replace the entry for *entity_id*."""
        if entity.id != entity_id:
            raise ValueError(f"entity id {entity.id!r} does not match key {entity_id!r}")
        self._entities[entity_id] = entity

    def remove(self, entity_id: str) -> bool:
        """Drop *entity_id*; returns whether it was present."""
        return self._entities.pop(entity_id, None) is not None

    def clear(self) -> None:
        self._entities.clear()

    def snapshot(self) -> dict[str, TrackedEntity]:
        """Copy of the store ordered by id."""
        return {entity_id: self._entities[entity_id] for entity_id in sorted(self._entities)}

    def apply(self, event: EntityUpdate | EntityRemoved) -> bool:
        """Apply a normalized event; returns whether the store changed."""
        if isinstance(event, EntityUpdate):
            self.upsert(event.entity_id, event.entity)
            return True
        return self.remove(event.entity_id)

    def expired(self, now: datetime, ttl: timedelta) -> list[str]:
        """Ids whose last update is older than *ttl* at *now*."""
        cutoff = now - ttl
        return [entity_id for entity_id, entity in sorted(self._entities.items()) if entity.last_updated < cutoff]
