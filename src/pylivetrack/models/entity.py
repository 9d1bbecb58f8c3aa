"""Tracked entity model."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from pylivetrack.models._base import EpochTimestamp, LiveTrackBaseModel, utcnow
from pylivetrack.models.geo import Coordinate


class TrackedEntity(LiveTrackBaseModel):
    """Last-known state of a remote peer.

    Parameters
    ----------
    id : str
        Non-empty identifier, unique within a store.
    username : str
        Display name reported by the peer.
    coordinate : Coordinate
        Last reported position.
    last_updated : datetime
        When the update was observed (UTC).
    """

    id: str
    username: str = ""
    coordinate: Coordinate
    last_updated: EpochTimestamp = Field(default_factory=utcnow)

    @field_validator("id")
    @classmethod
    def _normalize_id(cls, value: str) -> str:
        entity_id = value.strip()
        if not entity_id:
            raise ValueError("id must be non-empty")
        return entity_id

    @field_validator("last_updated")
    @classmethod
    def _require_timestamp(cls, value: datetime | None) -> datetime:
        return value if value is not None else utcnow()
