"""Route and published snapshot models."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import Field

from pylivetrack.models._base import LiveTrackBaseModel, utcnow
from pylivetrack.models.entity import TrackedEntity
from pylivetrack.models.geo import Coordinate

Route = list[Coordinate]
"""Ordered polyline: empty, or at least two points."""


def _point_feature(c: Coordinate, properties: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [c.longitude, c.latitude]},
        "properties": dict(properties),
    }


class RouteSnapshot(LiveTrackBaseModel):
    """What the orchestrator publishes to the presentation boundary.

    Parameters
    ----------
    generation : int
        Input generation the route was synthesized from.  Strictly
        increasing across published snapshots.
    local : Coordinate or None
        Local user position at that generation.
    entities : dict
        Tracked entities keyed by id, in waypoint order.
    route : tuple of Coordinate
        Stitched polyline over ``[local, *entities]``.
    """

    generation: int
    local: Coordinate | None = None
    entities: dict[str, TrackedEntity] = Field(default_factory=dict)
    route: tuple[Coordinate, ...] = ()
    computed_at: datetime = Field(default_factory=utcnow)

    def to_geojson(self) -> dict[str, Any]:
        """Render as a GeoJSON ``FeatureCollection``.

        One point for the local user, one per tracked entity (with its
        username) and a ``LineString`` when the route has two or more
        points.
        """
        features: list[dict[str, Any]] = []
        if self.local is not None:
            features.append(_point_feature(self.local, {"role": "local", "label": "You are here"}))
        for entity_id, entity in self.entities.items():
            features.append(
                _point_feature(
                    entity.coordinate,
                    {"role": "entity", "id": entity_id, "label": entity.username},
                )
            )
        if len(self.route) > 1:
            features.append(
                {
                    "type": "Feature",
                    "geometry": {
                        "type": "LineString",
                        "coordinates": [[c.longitude, c.latitude] for c in self.route],
                    },
                    "properties": {"role": "route", "generation": self.generation},
                }
            )
        return {"type": "FeatureCollection", "features": features}
