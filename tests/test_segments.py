from __future__ import annotations

import pytest

from pylivetrack.exceptions import ProviderError
from pylivetrack.models.geo import Coordinate, RegionBounds
from pylivetrack.routing.segments import SegmentResolver

INDIA = RegionBounds(min_lat=6.55, max_lat=35.675, min_lng=68.11, max_lng=97.4)
DELHI = Coordinate(latitude=28.70, longitude=77.10)
NOIDA = Coordinate(latitude=28.61, longitude=77.20)
LONDON = Coordinate(latitude=51.5, longitude=-0.12)


class FakeProvider:
    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[Coordinate, Coordinate]] = []

    async def fetch_path(self, a: Coordinate, b: Coordinate) -> list[Coordinate]:
        self.calls.append((a, b))
        if self.error is not None:
            raise self.error
        mid = Coordinate(latitude=(a.latitude + b.latitude) / 2, longitude=(a.longitude + b.longitude) / 2)
        return [a, mid, b]


@pytest.mark.asyncio
async def test_in_region_pair_calls_provider_exactly_once() -> None:
    provider = FakeProvider()
    resolver = SegmentResolver(provider)

    segment = await resolver.resolve_segment(DELHI, NOIDA, INDIA)

    assert provider.calls == [(DELHI, NOIDA)]
    assert len(segment) == 3
    assert segment[0] == DELHI and segment[-1] == NOIDA


@pytest.mark.asyncio
async def test_out_of_region_pair_is_straight_without_provider_call() -> None:
    provider = FakeProvider()
    resolver = SegmentResolver(provider)

    assert await resolver.resolve_segment(LONDON, NOIDA, INDIA) == [LONDON, NOIDA]
    assert await resolver.resolve_segment(NOIDA, LONDON, INDIA) == [NOIDA, LONDON]
    assert provider.calls == []


@pytest.mark.asyncio
async def test_provider_failure_falls_back_to_straight_segment() -> None:
    provider = FakeProvider(error=ProviderError("HTTP 503"))
    resolver = SegmentResolver(provider)

    assert await resolver.resolve_segment(DELHI, NOIDA, INDIA) == [DELHI, NOIDA]
    assert len(provider.calls) == 1
    assert resolver.fallbacks == 1


@pytest.mark.asyncio
async def test_unexpected_provider_exception_never_escapes() -> None:
    resolver = SegmentResolver(FakeProvider(error=KeyError("features")))

    assert await resolver.resolve_segment(DELHI, NOIDA, INDIA) == [DELHI, NOIDA]


@pytest.mark.asyncio
async def test_missing_provider_means_straight_lines() -> None:
    resolver = SegmentResolver(None)

    assert await resolver.resolve_segment(DELHI, NOIDA, INDIA) == [DELHI, NOIDA]
    assert resolver.provider_calls == 0
