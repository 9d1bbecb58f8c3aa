"""Normalized state events.

All ingestion paths (stream, HTTP seed, sensor, expiry sweep) convert
their inputs into these events. Only the orchestrator's owner task
applies them.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pylivetrack.models._base import utcnow
from pylivetrack.models.entity import TrackedEntity
from pylivetrack.models.geo import Coordinate


class IngestionSource(StrEnum):
    STREAM = "stream"
    HTTP = "http"
    SENSOR = "sensor"
    EXPIRY = "expiry"


class EntityUpdate(BaseModel):
    """Insert or replace one tracked entity."""

    model_config = ConfigDict(frozen=True)

    entity: TrackedEntity
    source: IngestionSource = IngestionSource.STREAM

    @property
    def entity_id(self) -> str:
        return self.entity.id


class EntityRemoved(BaseModel):
    """Drop one tracked entity."""

    model_config = ConfigDict(frozen=True)

    entity_id: str
    source: IngestionSource = IngestionSource.STREAM

    @field_validator("entity_id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        entity_id = value.strip()
        if not entity_id:
            raise ValueError("entity_id must be non-empty")
        return entity_id


class LocalFix(BaseModel):
    """A new position of the local user."""

    model_config = ConfigDict(frozen=True)

    coordinate: Coordinate
    observed_at: datetime = Field(default_factory=utcnow)
    source: IngestionSource = IngestionSource.SENSOR


StateEvent = EntityUpdate | EntityRemoved | LocalFix
