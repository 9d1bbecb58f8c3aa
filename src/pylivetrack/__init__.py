"""pylivetrack - Live position tracking with stitched multi-stop routes."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylivetrack")
except PackageNotFoundError:
    __version__ = "0+local"
from pylivetrack.config import SensorFilterConfig, StreamConfig, TrackerConfig
from pylivetrack.exceptions import (
    LiveTrackConfigError,
    LiveTrackError,
    LiveTrackTransportError,
    PermissionDeniedError,
    ProviderError,
    SessionError,
    StreamDisconnectedError,
    StreamError,
    StreamRefusedError,
)
from pylivetrack.models import Coordinate, LocationMessage, RegionBounds, Route, RouteSnapshot, TrackedEntity
from pylivetrack.orchestrator import RouteOrchestrator
from pylivetrack.position import LocalPositionProvider, PositionSensor, ReplayPositionSensor
from pylivetrack.routing import (
    OpenRouteServiceProvider,
    RouteProvider,
    RouteSynthesizer,
    SegmentResolver,
    in_region,
    qualifies_for_provider_routing,
)
from pylivetrack.session import Session
from pylivetrack.state.store import TrackedEntityStore
from pylivetrack.stream import LocationStreamClient

__all__ = [
    "__version__",
    "Coordinate",
    "LiveTrackConfigError",
    "LiveTrackError",
    "LiveTrackTransportError",
    "LocalPositionProvider",
    "LocationMessage",
    "LocationStreamClient",
    "OpenRouteServiceProvider",
    "PermissionDeniedError",
    "PositionSensor",
    "ProviderError",
    "RegionBounds",
    "ReplayPositionSensor",
    "Route",
    "RouteOrchestrator",
    "RouteProvider",
    "RouteSnapshot",
    "RouteSynthesizer",
    "SegmentResolver",
    "Session",
    "SensorFilterConfig",
    "SessionError",
    "StreamConfig",
    "StreamDisconnectedError",
    "StreamError",
    "StreamRefusedError",
    "TrackedEntity",
    "TrackedEntityStore",
    "TrackerConfig",
    "in_region",
    "qualifies_for_provider_routing",
]
