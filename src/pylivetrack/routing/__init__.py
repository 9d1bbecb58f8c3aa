"""Route synthesis layer.

Decides per waypoint pair whether to ask the directions provider or to
draw a straight line, and stitches the resulting segments into a
single polyline.
"""

from pylivetrack.routing.policy import in_region, qualifies_for_provider_routing
from pylivetrack.routing.provider import OpenRouteServiceProvider, RouteProvider
from pylivetrack.routing.segments import SegmentResolver
from pylivetrack.routing.synthesizer import RouteSynthesizer, join_segments

__all__ = [
    "OpenRouteServiceProvider",
    "RouteProvider",
    "RouteSynthesizer",
    "SegmentResolver",
    "in_region",
    "join_segments",
    "qualifies_for_provider_routing",
]
