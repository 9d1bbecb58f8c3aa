"""Local position provider.

Wraps a platform position sensor, applies the minimum distance/time
filter and reports fixes for the local user.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from typing import Protocol

from pylivetrack.config import SensorFilterConfig
from pylivetrack.exceptions import PermissionDeniedError
from pylivetrack.models.geo import Coordinate

_logger = logging.getLogger(__name__)


class SensorSubscription(Protocol):
    def remove(self) -> None:
        ...


class PositionSensor(Protocol):
    """Structural interface of a platform position sensor.

    ``watch`` callbacks may fire on any thread.
    """

    async def request_permission(self) -> bool:
        ...

    async def watch(
        self,
        callback: Callable[[Coordinate], None],
        *,
        min_distance_m: float,
        min_interval_s: float,
    ) -> SensorSubscription:
        ...


class FixFilter:
    """Pass a fix only when it moved far enough *and* enough time has passed."""

    def __init__(self, config: SensorFilterConfig) -> None:
        self._min_distance_m = config.min_distance_m
        self._min_interval_s = config.min_interval_s
        self._last: Coordinate | None = None
        self._last_at: float | None = None

    def accept(self, coordinate: Coordinate, now: float) -> bool:
        if self._last is not None and self._last_at is not None:
            if now - self._last_at < self._min_interval_s:
                return False
            if self._last.distance_to(coordinate) < self._min_distance_m:
                return False
        self._last = coordinate
        self._last_at = now
        return True

    def reset(self) -> None:
        self._last = None
        self._last_at = None


class LocalPositionProvider:
    """Emit filtered local fixes to *on_fix* on the event loop.

    Permission denial is terminal: :meth:`start` raises
    :class:`PermissionDeniedError` and does not retry.
    """

    def __init__(
        self,
        sensor: PositionSensor,
        config: SensorFilterConfig,
        *,
        on_fix: Callable[[Coordinate], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._sensor = sensor
        self._config = config
        self._on_fix = on_fix
        self._clock = clock
        self._filter = FixFilter(config)
        self._subscription: SensorSubscription | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._awaiting_first_fix = True

    @property
    def awaiting_first_fix(self) -> bool:
        return self._awaiting_first_fix

    @property
    def is_active(self) -> bool:
        return self._subscription is not None

    async def start(self) -> None:
        if self._subscription is not None:
            return
        if not await self._sensor.request_permission():
            raise PermissionDeniedError("Location permission denied; allow location access to track position")
        self._loop = asyncio.get_running_loop()
        self._subscription = await self._sensor.watch(
            self._on_raw_fix,
            min_distance_m=self._config.min_distance_m,
            min_interval_s=self._config.min_interval_s,
        )
        _logger.debug(
            "Position subscription started min_distance_m=%s min_interval_s=%s",
            self._config.min_distance_m,
            self._config.min_interval_s,
        )

    def stop(self) -> None:
        subscription = self._subscription
        self._subscription = None
        self._loop = None
        self._filter.reset()
        if subscription is not None:
            subscription.remove()
            _logger.debug("Position subscription released")

    def _on_raw_fix(self, coordinate: Coordinate) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._emit, coordinate)

    def _emit(self, coordinate: Coordinate) -> None:
        if self._subscription is None:
            return
        if not self._filter.accept(coordinate, self._clock()):
            return
        self._awaiting_first_fix = False
        self._on_fix(coordinate)


class _TaskSubscription:
    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    def remove(self) -> None:
        self._task.cancel()


class ReplayPositionSensor:
    """Sensor that replays a fixed sequence of coordinates.

    Useful for demos and tests; *granted* simulates the permission prompt.
    """

    def __init__(self, fixes: Iterable[Coordinate], *, interval: float = 0.0, granted: bool = True) -> None:
        self._fixes = list(fixes)
        self._interval = interval
        self._granted = granted

    async def request_permission(self) -> bool:
        return self._granted

    async def watch(
        self,
        callback: Callable[[Coordinate], None],
        *,
        min_distance_m: float,
        min_interval_s: float,
    ) -> SensorSubscription:
        async def _replay() -> None:
            for fix in self._fixes:
                callback(fix)
                await asyncio.sleep(self._interval)

        return _TaskSubscription(asyncio.create_task(_replay()))
