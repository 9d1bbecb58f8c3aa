"""Data models for pylivetrack."""

from pylivetrack.models._base import EpochTimestamp, LiveTrackBaseModel, parse_epoch_timestamp
from pylivetrack.models.entity import TrackedEntity
from pylivetrack.models.geo import Coordinate, RegionBounds
from pylivetrack.models.route import Route, RouteSnapshot
from pylivetrack.models.stream import LocationMessage

__all__ = [
    "Coordinate",
    "EpochTimestamp",
    "LiveTrackBaseModel",
    "LocationMessage",
    "RegionBounds",
    "Route",
    "RouteSnapshot",
    "TrackedEntity",
    "parse_epoch_timestamp",
]
