"""Region policy for provider routing.

Pure functions; bounds are always passed in, never hard-coded.
"""

from __future__ import annotations

from pylivetrack.models.geo import Coordinate, RegionBounds


def in_region(c: Coordinate, bounds: RegionBounds) -> bool:
    """Whether *c* lies in the closed box *bounds*."""
    return bounds.contains(c)


def qualifies_for_provider_routing(a: Coordinate, b: Coordinate, bounds: RegionBounds) -> bool:
    """Both endpoints must be in-region for a provider call."""
    return in_region(a, bounds) and in_region(b, bounds)
