"""Geographic value types."""

from __future__ import annotations

import math

from pydantic import Field, model_validator

from pylivetrack.models._base import LiveTrackBaseModel

_EARTH_RADIUS_M = 6_371_008.8


class Coordinate(LiveTrackBaseModel):
    """Immutable WGS84 position.

    Parameters
    ----------
    latitude : float
        Degrees in ``[-90, 90]``.
    longitude : float
        Degrees in ``[-180, 180]``.
    """

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    @classmethod
    def from_lng_lat(cls, pair: object) -> Coordinate:
        """Build from a provider-native ``[longitude, latitude]`` pair.

        Extra members (e.g. elevation) are ignored.
        """
        if not isinstance(pair, (list, tuple)) or len(pair) < 2:
            raise ValueError(f"expected [lng, lat] pair, got {pair!r}")
        lng, lat = pair[0], pair[1]
        if isinstance(lng, bool) or isinstance(lat, bool):
            raise ValueError(f"expected numeric [lng, lat] pair, got {pair!r}")
        return cls(latitude=float(lat), longitude=float(lng))

    def as_lng_lat(self) -> str:
        """Provider-native ``"lng,lat"`` text."""
        return f"{self.longitude},{self.latitude}"

    def distance_to(self, other: Coordinate) -> float:
        """Great-circle (haversine) distance in metres."""
        lat1 = math.radians(self.latitude)
        lat2 = math.radians(other.latitude)
        dlat = lat2 - lat1
        dlng = math.radians(other.longitude - self.longitude)
        h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
        return 2 * _EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


class RegionBounds(LiveTrackBaseModel):
    """Closed latitude/longitude box.

    A coordinate is in-region iff both its latitude and longitude fall
    within the closed intervals.
    """

    min_lat: float = Field(ge=-90.0, le=90.0)
    max_lat: float = Field(ge=-90.0, le=90.0)
    min_lng: float = Field(ge=-180.0, le=180.0)
    max_lng: float = Field(ge=-180.0, le=180.0)

    @model_validator(mode="after")
    def _check_order(self) -> RegionBounds:
        if self.min_lat > self.max_lat:
            raise ValueError(f"min_lat {self.min_lat} is greater than max_lat {self.max_lat}")
        if self.min_lng > self.max_lng:
            raise ValueError(f"min_lng {self.min_lng} is greater than max_lng {self.max_lng}")
        return self

    def contains(self, c: Coordinate) -> bool:
        return self.min_lat <= c.latitude <= self.max_lat and self.min_lng <= c.longitude <= self.max_lng

    @classmethod
    def parse(cls, text: str) -> RegionBounds:
        """Parse ``"minLat,maxLat,minLng,maxLng"``."""
        parts = [p.strip() for p in text.split(",")]
        if len(parts) != 4:
            raise ValueError(f"region must be 'minLat,maxLat,minLng,maxLng', got {text!r}")
        min_lat, max_lat, min_lng, max_lng = (float(p) for p in parts)
        return cls(min_lat=min_lat, max_lat=max_lat, min_lng=min_lng, max_lng=max_lng)
