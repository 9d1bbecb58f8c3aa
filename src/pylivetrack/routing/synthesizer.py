"""Stitch consecutive waypoint segments into one polyline."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence

from pylivetrack.models.geo import Coordinate, RegionBounds
from pylivetrack.models.route import Route
from pylivetrack.routing.segments import SegmentResolver

_logger = logging.getLogger(__name__)


def _collapse_adjacent(points: list[Coordinate]) -> list[Coordinate]:
    collapsed: list[Coordinate] = []
    for point in points:
        if collapsed and collapsed[-1] == point:
            continue
        collapsed.append(point)
    # All points coincide: keep the degenerate two-point line rather than a single vertex.
    return collapsed if len(collapsed) > 1 else points[:2]


def join_segments(segments: Iterable[Sequence[Coordinate]]) -> Route:
    """Concatenate segments, keeping each shared join point once.

    The last point of the accumulated route is dropped before the next
    segment is appended, so segment ``i`` ending where segment ``i+1``
    starts contributes that point a single time.
    """
    route: list[Coordinate] = []
    for segment in segments:
        if route:
            route.pop()
        route.extend(segment)
    return _collapse_adjacent(route)


class RouteSynthesizer:
    """Build a route through an ordered list of waypoints.

    Segment requests for one call are issued concurrently; the result is
    always assembled in waypoint order.
    """

    def __init__(self, resolver: SegmentResolver) -> None:
        self._resolver = resolver

    @property
    def resolver(self) -> SegmentResolver:
        return self._resolver

    async def synthesize(self, waypoints: Sequence[Coordinate], bounds: RegionBounds) -> Route:
        if len(waypoints) < 2:
            return []

        pairs = list(zip(waypoints, waypoints[1:]))
        # gather() preserves argument order regardless of completion order.
        segments = await asyncio.gather(*(self._resolver.resolve_segment(a, b, bounds) for a, b in pairs))
        route = join_segments(segments)
        _logger.debug("Synthesized %d legs into %d points", len(pairs), len(route))
        return route
