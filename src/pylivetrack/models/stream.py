"""Location stream wire payloads."""

from __future__ import annotations

from pydantic import field_validator

from pylivetrack._constants import INBOUND_EVENT
from pylivetrack.models._base import EpochTimestamp, LiveTrackBaseModel
from pylivetrack.models.geo import Coordinate


class LocationMessage(LiveTrackBaseModel):
    """A per-user location event as carried on the stream.

    Wire shape::

        {"event": "newLocation", "userId": "...", "username": "...",
         "coords": {"latitude": 28.6, "longitude": 77.2}, "timestamp": 1771000000}
    """

    event: str = INBOUND_EVENT
    user_id: str
    username: str = ""
    coords: Coordinate
    timestamp: EpochTimestamp = None

    @field_validator("user_id", mode="before")
    @classmethod
    def _normalize_user_id(cls, value: object) -> str:
        text = "" if value is None else str(value).strip()
        if not text:
            raise ValueError("userId must be non-empty")
        return text

    @field_validator("username", mode="before")
    @classmethod
    def _normalize_username(cls, value: object) -> str:
        return "" if value is None else str(value)
