#!/usr/bin/env python3
"""Synthesize a stitched route through waypoints and print it as GeoJSON.

Usage
-----
Set environment variables and run::

    export LIVETRACK_ORS_API_KEY="your-openrouteservice-key"
    python scripts/route_probe.py 28.70,77.10 28.61,77.20 28.53,77.39

The first waypoint plays the local user, the rest play tracked peers.
Without an API key every leg is a straight line.

Options::

    --region minLat,maxLat,minLng,maxLng   Override the provider routing region
    --timeout SECONDS                      Per-request provider timeout
    --output FILE                          Write GeoJSON to FILE instead of stdout
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import aiohttp

from pylivetrack import (
    Coordinate,
    LiveTrackConfigError,
    OpenRouteServiceProvider,
    RegionBounds,
    RouteSnapshot,
    RouteSynthesizer,
    SegmentResolver,
    TrackedEntity,
    TrackerConfig,
)
from pylivetrack._transport import JsonTransport


def _parse_waypoint(text: str) -> Coordinate:
    try:
        lat_text, lng_text = text.split(",", 1)
        return Coordinate(latitude=float(lat_text), longitude=float(lng_text))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"waypoint must be 'lat,lng', got {text!r}") from exc


async def run(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.region:
        overrides["region"] = RegionBounds.parse(args.region)
    if args.timeout is not None:
        overrides["provider_timeout"] = args.timeout
    config = TrackerConfig.from_env(**overrides)

    waypoints: list[Coordinate] = args.waypoints
    async with aiohttp.ClientSession() as http:
        provider = None
        if config.ors_api_key:
            provider = OpenRouteServiceProvider(
                JsonTransport(http),
                api_key=config.ors_api_key,
                base_url=config.ors_base_url,
                profile=config.ors_profile,
                timeout=config.provider_timeout,
            )
        resolver = SegmentResolver(provider)
        route = await RouteSynthesizer(resolver).synthesize(waypoints, config.region)

    logging.getLogger(__name__).info(
        "%d waypoints -> %d points (%d provider calls, %d fallbacks)",
        len(waypoints),
        len(route),
        resolver.provider_calls,
        resolver.fallbacks,
    )
    snapshot = RouteSnapshot(
        generation=1,
        local=waypoints[0] if waypoints else None,
        entities={
            f"waypoint-{i}": TrackedEntity(id=f"waypoint-{i}", username=f"Waypoint {i}", coordinate=c)
            for i, c in enumerate(waypoints[1:], start=1)
        },
        route=tuple(route),
    )
    return snapshot.to_geojson()


def main() -> None:
    parser = argparse.ArgumentParser(description="Synthesize a stitched route through waypoints.")
    parser.add_argument("waypoints", nargs="+", type=_parse_waypoint, help="Waypoints as lat,lng")
    parser.add_argument("--region", help="Provider routing region minLat,maxLat,minLng,maxLng")
    parser.add_argument("--timeout", type=float, help="Per-request provider timeout in seconds")
    parser.add_argument("--output", "-o", help="Write GeoJSON to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        geojson = asyncio.run(run(args))
    except (LiveTrackConfigError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(2)

    text = json.dumps(geojson, indent=2)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


if __name__ == "__main__":
    main()
