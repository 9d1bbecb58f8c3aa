"""Per-pair segment resolution with straight-line fallback."""

from __future__ import annotations

import logging

from pylivetrack.exceptions import ProviderError
from pylivetrack.models.geo import Coordinate, RegionBounds
from pylivetrack.models.route import Route
from pylivetrack.routing.policy import qualifies_for_provider_routing
from pylivetrack.routing.provider import RouteProvider

_logger = logging.getLogger(__name__)


class SegmentResolver:
    """Resolve one waypoint pair into a path.

    Out-of-region pairs, a missing provider and provider failures all
    yield the straight segment ``[a, b]``.  :meth:`resolve_segment`
    never raises.
    """

    def __init__(self, provider: RouteProvider | None) -> None:
        self._provider = provider
        self.provider_calls = 0
        self.fallbacks = 0

    @property
    def provider(self) -> RouteProvider | None:
        return self._provider

    async def resolve_segment(self, a: Coordinate, b: Coordinate, bounds: RegionBounds) -> Route:
        if self._provider is None or not qualifies_for_provider_routing(a, b, bounds):
            return [a, b]

        self.provider_calls += 1
        try:
            return await self._provider.fetch_path(a, b)
        except ProviderError as exc:
            _logger.warning("Route provider failed, falling back to straight line: %s", exc)
        except Exception:
            _logger.warning("Route provider raised unexpectedly, falling back to straight line", exc_info=True)
        self.fallbacks += 1
        return [a, b]
