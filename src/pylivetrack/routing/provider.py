"""Directions provider.

Endpoint:
  - ``GET {base}/v2/directions/{profile}?api_key=..&start=lng,lat&end=lng,lat``

One outbound request per call, bounded by a timeout, no retries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pylivetrack._transport import Transport
from pylivetrack.exceptions import LiveTrackTransportError, ProviderError
from pylivetrack.models.geo import Coordinate
from pylivetrack.models.route import Route

_logger = logging.getLogger(__name__)


class RouteProvider(Protocol):
    """Anything that can fetch an ordered path between two coordinates."""

    async def fetch_path(self, a: Coordinate, b: Coordinate) -> Route:
        ...


class _Geometry(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    coordinates: list[list[float]] = Field(..., min_length=2)


class _Feature(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    geometry: _Geometry


class _DirectionsEnvelope(BaseModel):
    """Minimal Pydantic envelope for a GeoJSON directions response."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    features: list[_Feature] = Field(..., min_length=1)


def parse_directions(payload: Any) -> Route:
    """Map the first feature's ``[lng, lat]`` list to coordinates, preserving order.

    Raises
    ------
    ProviderError
        If the geometry is missing or malformed.
    """
    try:
        envelope = _DirectionsEnvelope.model_validate(payload)
        return [Coordinate.from_lng_lat(pair) for pair in envelope.features[0].geometry.coordinates]
    except (ValidationError, ValueError) as exc:
        raise ProviderError(f"Malformed directions geometry: {exc}") from exc


class OpenRouteServiceProvider:
    """OpenRouteService directions client."""

    def __init__(
        self,
        transport: Transport,
        *,
        api_key: str,
        base_url: str,
        profile: str,
        timeout: float,
    ) -> None:
        self._transport = transport
        self._api_key = api_key
        self._url = f"{base_url.rstrip('/')}/v2/directions/{profile}"
        self._timeout = timeout

    async def fetch_path(self, a: Coordinate, b: Coordinate) -> Route:
        params = {
            "api_key": self._api_key,
            "start": a.as_lng_lat(),
            "end": b.as_lng_lat(),
        }
        try:
            async with asyncio.timeout(self._timeout):
                payload = await self._transport.get_json(self._url, params=params, timeout=self._timeout)
        except TimeoutError as exc:
            raise ProviderError(f"Directions request timed out after {self._timeout}s") from exc
        except LiveTrackTransportError as exc:
            raise ProviderError(f"Directions request failed: {exc}") from exc

        path = parse_directions(payload)
        _logger.debug("Directions %s -> %s: %d points", a.as_lng_lat(), b.as_lng_lat(), len(path))
        return path
