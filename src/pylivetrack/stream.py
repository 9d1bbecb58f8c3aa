"""Location stream client.

Owns:
- the connect/disconnect lifecycle of the MQTT runtime
- translating inbound location messages into entity updates
- publishing the local user's position
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Callable
from typing import Any

from pylivetrack._constants import OUTBOUND_EVENT, locations_topic
from pylivetrack._stream import LocationStreamRuntime, StreamBootstrap
from pylivetrack.config import StreamConfig
from pylivetrack.exceptions import (
    LiveTrackError,
    StreamDisconnectedError,
    StreamError,
    StreamRefusedError,
)
from pylivetrack.ingestion.stream import build_event_from_location
from pylivetrack.models.geo import Coordinate
from pylivetrack.session import Session
from pylivetrack.state.events import EntityUpdate

_logger = logging.getLogger(__name__)

RuntimeFactory = Callable[..., LocationStreamRuntime]

# CONNACK reasons that retrying with the same token cannot fix.
_CREDENTIAL_REFUSALS = frozenset({"Not authorized", "Bad user name or password"})


def build_bootstrap(config: StreamConfig, session: Session) -> StreamBootstrap:
    """Connection details for *session*.  Raises :class:`SessionError` without a token."""
    token = session.require_token()
    return StreamBootstrap(
        host=config.host,
        port=config.port,
        tls=config.tls,
        keepalive=config.keepalive,
        client_id=f"livetrack_{session.user_id}_{secrets.token_hex(4)}",
        username=session.user_id,
        password=token,
        subscribe_topic=locations_topic(config.topic_prefix),
        reconnect_min_delay=config.reconnect_min_delay,
        reconnect_max_delay=config.reconnect_max_delay,
    )


class LocationStreamClient:
    """Live feed of peer positions plus an outbound channel for our own.

    Inbound updates are delivered to *on_update* on the event loop; the
    caller decides how they reach the store.  Connection drops are
    reported to *on_error* as :class:`StreamDisconnectedError` and never
    raised; paho reconnects in the background with the configured
    backoff.  A refused CONNACK is reported once as
    :class:`StreamRefusedError`; when the broker rejects the credentials
    the stream is closed instead of retrying with the same token.
    """

    def __init__(
        self,
        config: StreamConfig,
        session: Session,
        *,
        on_update: Callable[[EntityUpdate], None],
        on_error: Callable[[LiveTrackError], None] | None = None,
        runtime_factory: RuntimeFactory = LocationStreamRuntime,
    ) -> None:
        self._config = config
        self._session = session
        self._on_update = on_update
        self._on_error = on_error
        self._runtime_factory = runtime_factory
        self._runtime: LocationStreamRuntime | None = None
        self._connected = False
        self._refused = False
        self._stop_task: asyncio.Task[None] | None = None

    @property
    def runtime(self) -> LocationStreamRuntime | None:
        return self._runtime

    @property
    def is_connected(self) -> bool:
        """Whether the broker currently acknowledges the connection."""
        return self._connected

    async def connect(self) -> LocationStreamRuntime:
        """Open the stream and return the live runtime handle.

        Raises
        ------
        SessionError
            If the session has no token; no connection is attempted.
        StreamError
            If the initial connection fails.
        """
        bootstrap = build_bootstrap(self._config, self._session)
        await self.disconnect()
        self._refused = False

        loop = asyncio.get_running_loop()
        runtime = self._runtime_factory(
            loop=loop,
            on_payload=self._on_payload,
            on_connection_change=self._on_connection_change,
            logger=_logger,
        )
        # Assigned before start so a CONNACK delivered during start is attributed to it.
        self._runtime = runtime
        try:
            await loop.run_in_executor(None, runtime.start, bootstrap)
        except StreamError:
            self._runtime = None
            raise
        return runtime

    async def disconnect(self) -> None:
        """Close the stream and release the network loop.  Safe to call twice."""
        runtime = self._runtime
        self._runtime = None
        self._connected = False
        if runtime is None:
            return
        try:
            await asyncio.get_running_loop().run_in_executor(None, runtime.stop)
        except Exception:
            _logger.debug("Stream runtime stop failed", exc_info=True)

    def publish(self, coordinate: Coordinate) -> bool:
        """Send the local user's position; returns whether it was queued."""
        runtime = self._runtime
        if runtime is None:
            return False
        payload: dict[str, Any] = {
            "event": OUTBOUND_EVENT,
            "userId": self._session.user_id,
            "username": self._session.username,
            "coords": {"latitude": coordinate.latitude, "longitude": coordinate.longitude},
        }
        return runtime.publish(locations_topic(self._config.topic_prefix, self._session.user_id), payload)

    def _on_payload(self, topic: str, payload: dict[str, Any]) -> None:
        event = build_event_from_location(payload, local_user_id=self._session.user_id)
        if event is None:
            return
        _logger.debug("Location update topic=%s id=%s", topic, event.entity_id)
        self._on_update(event)

    def _on_connection_change(self, connected: bool, reason: str) -> None:
        was_connected = self._connected
        self._connected = connected
        if connected:
            self._refused = False
            return
        if was_connected:
            self._report(StreamDisconnectedError(f"Location stream dropped: {reason}", reason=reason))
            return
        if self._refused or self._runtime is None:
            return
        # paho signals a refused CONNACK and the follow-up disconnect; report once.
        self._refused = True
        self._report(StreamRefusedError(f"Location stream connection refused: {reason}", reason=reason))
        if reason in _CREDENTIAL_REFUSALS:
            _logger.warning("Broker rejected the session token; closing the location stream")
            self._stop_task = asyncio.get_running_loop().create_task(self.disconnect())

    def _report(self, error: LiveTrackError) -> None:
        if self._on_error is not None:
            self._on_error(error)
