"""High-level orchestrator tying position, stream, store and routing together."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import aiohttp

from pylivetrack._api.tracked_users import fetch_tracked_users
from pylivetrack._stream import LocationStreamRuntime
from pylivetrack._transport import JsonTransport, Transport
from pylivetrack.config import TrackerConfig
from pylivetrack.exceptions import (
    LiveTrackError,
    LiveTrackTransportError,
    PermissionDeniedError,
    SessionError,
    StreamError,
)
from pylivetrack.models._base import utcnow
from pylivetrack.models.entity import TrackedEntity
from pylivetrack.models.geo import Coordinate
from pylivetrack.models.route import RouteSnapshot
from pylivetrack.position import LocalPositionProvider, PositionSensor
from pylivetrack.routing.provider import OpenRouteServiceProvider, RouteProvider
from pylivetrack.routing.segments import SegmentResolver
from pylivetrack.routing.synthesizer import RouteSynthesizer
from pylivetrack.session import Session
from pylivetrack.state.events import EntityRemoved, EntityUpdate, IngestionSource, LocalFix, StateEvent
from pylivetrack.state.store import TrackedEntityStore
from pylivetrack.stream import LocationStreamClient, RuntimeFactory

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _ExpirySweep:
    now: datetime


class RouteOrchestrator:
    """Keep one stitched route over the local user and all tracked peers.

    Usage::

        async with RouteOrchestrator(config, session, sensor=sensor, on_route=render) as tracker:
            snapshot = await tracker.wait_for_route()

    All state changes go through one queue drained by a single owner
    task.  Every applied change bumps the input generation and starts a
    fresh synthesis; an older in-flight synthesis is cancelled and its
    result, if any, is never published.
    """

    def __init__(
        self,
        config: TrackerConfig,
        session: Session,
        *,
        sensor: PositionSensor | None = None,
        http_session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        provider: RouteProvider | None = None,
        stream_runtime_factory: RuntimeFactory = LocationStreamRuntime,
        on_route: Callable[[RouteSnapshot], None] | None = None,
        on_error: Callable[[LiveTrackError], None] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._session = session
        self._sensor = sensor
        self._external_http = http_session is not None
        self._http_session = http_session
        self._transport = transport
        self._external_provider = provider is not None
        self._provider = provider
        self._stream_runtime_factory = stream_runtime_factory
        self._on_route = on_route
        self._on_error = on_error
        self._clock = clock

        self._store = TrackedEntityStore()
        self._local: Coordinate | None = None
        self._generation = 0
        self._latest: RouteSnapshot | None = None
        self._route_changed = asyncio.Condition()
        self._permission_denied = False
        self._errors: list[LiveTrackError] = []

        self._synthesizer: RouteSynthesizer | None = None
        self._stream: LocationStreamClient | None = None
        self._position: LocalPositionProvider | None = None
        self._queue: asyncio.Queue[StateEvent | _ExpirySweep] | None = None
        self._owner_task: asyncio.Task[None] | None = None
        self._synthesis_task: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RouteOrchestrator:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """Start state ownership, the stream, the sensor and the optional seed."""
        if self._owner_task is not None:
            return
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = JsonTransport(self._http_session)
        if self._provider is None and self._config.ors_api_key:
            self._provider = OpenRouteServiceProvider(
                self._transport,
                api_key=self._config.ors_api_key,
                base_url=self._config.ors_base_url,
                profile=self._config.ors_profile,
                timeout=self._config.provider_timeout,
            )
        if self._provider is None:
            _logger.info("No route provider configured; every segment is a straight line")
        self._synthesizer = RouteSynthesizer(SegmentResolver(self._provider))

        self._queue = asyncio.Queue()
        self._owner_task = asyncio.create_task(self._run(), name="livetrack-state-owner")

        await self._start_stream()
        await self._start_position()

        if self._config.api_base_url and self._session.has_token:
            self._spawn(self._seed_tracked_users(), "livetrack-seed")
        if self._config.entity_ttl > 0:
            self._spawn(self._sweep_expired(), "livetrack-expiry")

    async def stop(self) -> None:
        """Cancel in-flight work, release the sensor and stream, and clear state.

        The published snapshot and generation counter are reset as well.
        """
        tasks: list[asyncio.Task[Any]] = list(self._background)
        if self._synthesis_task is not None:
            tasks.append(self._synthesis_task)
        if self._owner_task is not None:
            tasks.append(self._owner_task)
        for task in tasks:
            task.cancel()
        # Cancelled segment fetches unwind immediately; nothing is awaited to completion.
        await asyncio.gather(*tasks, return_exceptions=True)
        self._background.clear()
        self._synthesis_task = None
        self._owner_task = None
        self._queue = None

        if self._position is not None:
            self._position.stop()
            self._position = None
        if self._stream is not None:
            await self._stream.disconnect()
            self._stream = None

        # A later start() begins a new session; nothing from this one may be awaited or shown.
        self._store.clear()
        self._local = None
        self._latest = None
        self._generation = 0
        self._permission_denied = False

        if not self._external_http and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None
            if not self._external_provider:
                self._provider = None

    # ------------------------------------------------------------------
    # Presentation boundary
    # ------------------------------------------------------------------

    @property
    def latest(self) -> RouteSnapshot | None:
        """Most recently published snapshot."""
        return self._latest

    @property
    def entities(self) -> dict[str, TrackedEntity]:
        return self._store.snapshot()

    @property
    def local_position(self) -> Coordinate | None:
        return self._local

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def awaiting_first_fix(self) -> bool:
        return self._local is None

    @property
    def permission_denied(self) -> bool:
        """Sensor access was refused; tracking needs user action."""
        return self._permission_denied

    @property
    def errors(self) -> list[LiveTrackError]:
        return list(self._errors)

    @property
    def stream(self) -> LocationStreamClient | None:
        return self._stream

    async def wait_for_route(self, *, min_generation: int = 1, timeout: float | None = None) -> RouteSnapshot:
        """Wait until a snapshot of at least *min_generation* is published."""
        async with asyncio.timeout(timeout):
            async with self._route_changed:
                await self._route_changed.wait_for(
                    lambda: self._latest is not None and self._latest.generation >= min_generation
                )
        assert self._latest is not None  # noqa: S101
        return self._latest

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def submit(self, event: StateEvent) -> None:
        """Queue a state event for the owner task.  Must be called on the loop."""
        if self._queue is None:
            _logger.debug("Dropping %s: orchestrator not running", type(event).__name__)
            return
        self._queue.put_nowait(event)

    def update_local_position(self, coordinate: Coordinate) -> None:
        """Feed a local fix directly (hosts without a :class:`PositionSensor`)."""
        self.submit(LocalFix(coordinate=coordinate, observed_at=self._clock()))

    def remove_entity(self, entity_id: str) -> None:
        self.submit(EntityRemoved(entity_id=entity_id, source=IngestionSource.HTTP))

    # ------------------------------------------------------------------
    # Startup helpers
    # ------------------------------------------------------------------

    def _spawn(self, coro: Any, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _start_stream(self) -> None:
        stream = LocationStreamClient(
            self._config.stream,
            self._session,
            on_update=self.submit,
            on_error=self._report_error,
            runtime_factory=self._stream_runtime_factory,
        )
        try:
            await stream.connect()
        except SessionError:
            _logger.info("No session token; location stream not connected")
            return
        except StreamError as exc:
            self._report_error(exc)
            return
        self._stream = stream

    async def _start_position(self) -> None:
        if self._sensor is None:
            return
        position = LocalPositionProvider(
            self._sensor,
            self._config.sensor,
            on_fix=self.update_local_position,
        )
        try:
            await position.start()
        except PermissionDeniedError as exc:
            self._permission_denied = True
            self._report_error(exc)
            return
        self._position = position

    async def _seed_tracked_users(self) -> None:
        assert self._transport is not None  # noqa: S101
        assert self._config.api_base_url is not None  # noqa: S101
        try:
            events = await fetch_tracked_users(
                self._transport,
                self._session,
                api_base_url=self._config.api_base_url,
                timeout=self._config.provider_timeout,
            )
        except (LiveTrackTransportError, TimeoutError) as exc:
            _logger.warning("Failed to fetch tracked users: %s", exc)
            return
        for event in events:
            self.submit(event)

    async def _sweep_expired(self) -> None:
        interval = max(1.0, self._config.entity_ttl / 4)
        while True:
            await asyncio.sleep(interval)
            self.submit_sweep(self._clock())

    def submit_sweep(self, now: datetime) -> None:
        """Ask the owner task to drop entities older than ``entity_ttl`` at *now*."""
        if self._queue is not None:
            self._queue.put_nowait(_ExpirySweep(now=now))

    def _report_error(self, error: LiveTrackError) -> None:
        self._errors.append(error)
        if self._on_error is None:
            return
        try:
            self._on_error(error)
        except Exception:
            _logger.warning("on_error callback raised", exc_info=True)

    # ------------------------------------------------------------------
    # State owner
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        assert self._queue is not None  # noqa: S101
        queue = self._queue
        while True:
            event = await queue.get()
            try:
                changed = self._apply(event)
            except Exception:
                _logger.warning("Failed to apply %s", type(event).__name__, exc_info=True)
                continue
            if changed:
                self._trigger_synthesis()

    def _apply(self, event: StateEvent | _ExpirySweep) -> bool:
        if isinstance(event, _ExpirySweep):
            ttl = timedelta(seconds=self._config.entity_ttl)
            changed = False
            for entity_id in self._store.expired(event.now, ttl):
                removal = EntityRemoved(entity_id=entity_id, source=IngestionSource.EXPIRY)
                changed = self._apply(removal) or changed
            return changed

        _logger.debug("Applying %s from %s", type(event).__name__, event.source)
        if isinstance(event, LocalFix):
            self._local = event.coordinate
            if self._stream is not None:
                self._stream.publish(event.coordinate)
            return True
        return self._store.apply(event)

    def _trigger_synthesis(self) -> None:
        self._generation += 1
        if self._local is None:
            # No route before the first local fix.
            return
        generation = self._generation
        local = self._local
        entities = self._store.snapshot()

        previous = self._synthesis_task
        if previous is not None and not previous.done():
            previous.cancel()
        self._synthesis_task = asyncio.create_task(
            self._synthesize(generation, local, entities),
            name=f"livetrack-synthesis-{generation}",
        )

    async def _synthesize(self, generation: int, local: Coordinate, entities: dict[str, TrackedEntity]) -> None:
        assert self._synthesizer is not None  # noqa: S101
        waypoints = [local, *(entity.coordinate for entity in entities.values())]
        route = await self._synthesizer.synthesize(waypoints, self._config.region)

        if generation != self._generation:
            _logger.debug("Discarding stale route generation=%d latest=%d", generation, self._generation)
            return

        snapshot = RouteSnapshot(
            generation=generation,
            local=local,
            entities=entities,
            route=tuple(route),
            computed_at=self._clock(),
        )
        self._latest = snapshot
        async with self._route_changed:
            self._route_changed.notify_all()
        if self._on_route is None:
            return
        try:
            self._on_route(snapshot)
        except Exception:
            _logger.warning("on_route callback raised", exc_info=True)
