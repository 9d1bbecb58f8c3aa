from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

import pytest

from pylivetrack._stream import StreamBootstrap, decode_stream_payload, encode_stream_payload
from pylivetrack.config import StreamConfig
from pylivetrack.exceptions import LiveTrackError, SessionError, StreamDisconnectedError, StreamRefusedError
from pylivetrack.models.geo import Coordinate
from pylivetrack.session import Session
from pylivetrack.state.events import EntityUpdate
from pylivetrack.stream import LocationStreamClient, build_bootstrap


class FakeRuntime:
    instances: list[FakeRuntime] = []

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_payload: Callable[[str, dict[str, Any]], None],
        on_connection_change: Callable[[bool, str], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self.loop = loop
        self.on_payload = on_payload
        self.on_connection_change = on_connection_change
        self.bootstrap: StreamBootstrap | None = None
        self.published: list[tuple[str, dict[str, Any]]] = []
        self.stopped = False
        FakeRuntime.instances.append(self)

    @property
    def is_running(self) -> bool:
        return self.bootstrap is not None and not self.stopped

    def start(self, bootstrap: StreamBootstrap) -> None:
        self.bootstrap = bootstrap

    def publish(self, topic: str, payload: Mapping[str, Any]) -> bool:
        self.published.append((topic, dict(payload)))
        return True

    def stop(self) -> None:
        self.stopped = True


@pytest.fixture(autouse=True)
def _reset_runtimes() -> None:
    FakeRuntime.instances.clear()


def _client(
    session: Session,
    updates: list[EntityUpdate],
    errors: list[LiveTrackError] | None = None,
) -> LocationStreamClient:
    return LocationStreamClient(
        StreamConfig(host="broker.example.com", port=8883, tls=True, topic_prefix="trk"),
        session,
        on_update=updates.append,
        on_error=errors.append if errors is not None else None,
        runtime_factory=FakeRuntime,
    )


def test_bootstrap_authenticates_with_bearer_token() -> None:
    session = Session(user_id="me", username="Me", token="jwt-token")

    bootstrap = build_bootstrap(StreamConfig(topic_prefix="trk/"), session)

    assert bootstrap.username == "me"
    assert bootstrap.password == "jwt-token"
    assert bootstrap.subscribe_topic == "trk/locations/+"
    assert bootstrap.client_id.startswith("livetrack_me_")


@pytest.mark.asyncio
async def test_connect_without_token_never_creates_runtime() -> None:
    client = _client(Session(user_id="me", token=None), [])

    with pytest.raises(SessionError):
        await client.connect()
    assert FakeRuntime.instances == []
    assert client.runtime is None


@pytest.mark.asyncio
async def test_inbound_messages_are_delivered_as_updates() -> None:
    updates: list[EntityUpdate] = []
    client = _client(Session(user_id="me", token="t"), updates)
    runtime = await client.connect()
    assert isinstance(runtime, FakeRuntime)

    runtime.on_payload(
        "trk/locations/u1",
        {"event": "newLocation", "userId": "u1", "username": "asha", "coords": {"latitude": 1, "longitude": 2}},
    )
    runtime.on_payload("trk/locations/me", {"userId": "me", "coords": {"latitude": 1, "longitude": 2}})
    runtime.on_payload("trk/locations/u2", {"userId": "u2"})

    assert [u.entity_id for u in updates] == ["u1"]


@pytest.mark.asyncio
async def test_publish_sends_local_position_on_own_topic() -> None:
    client = _client(Session(user_id="me", username="Me", token="t"), [])
    assert client.publish(Coordinate(latitude=1.0, longitude=2.0)) is False

    runtime = await client.connect()
    assert client.publish(Coordinate(latitude=28.7, longitude=77.1)) is True

    assert isinstance(runtime, FakeRuntime)
    assert runtime.published == [
        (
            "trk/locations/me",
            {
                "event": "locationUpdate",
                "userId": "me",
                "username": "Me",
                "coords": {"latitude": 28.7, "longitude": 77.1},
            },
        )
    ]


@pytest.mark.asyncio
async def test_drop_is_reported_not_raised() -> None:
    errors: list[LiveTrackError] = []
    client = _client(Session(user_id="me", token="t"), [], errors)
    runtime = await client.connect()
    assert isinstance(runtime, FakeRuntime)

    runtime.on_connection_change(True, "Success")
    assert client.is_connected
    runtime.on_connection_change(False, "Keep alive timeout")

    assert not client.is_connected
    assert len(errors) == 1
    assert isinstance(errors[0], StreamDisconnectedError)
    assert errors[0].reason == "Keep alive timeout"


@pytest.mark.asyncio
async def test_rejected_token_is_reported_once_and_closes_stream() -> None:
    errors: list[LiveTrackError] = []
    client = _client(Session(user_id="me", token="expired"), [], errors)
    runtime = await client.connect()
    assert isinstance(runtime, FakeRuntime)

    # Refused CONNACK, then the disconnect paho signals for it.
    runtime.on_connection_change(False, "Not authorized")
    runtime.on_connection_change(False, "Not authorized")
    await asyncio.sleep(0.05)

    assert not client.is_connected
    assert len(errors) == 1
    assert isinstance(errors[0], StreamRefusedError)
    assert errors[0].reason == "Not authorized"
    assert runtime.stopped
    assert client.runtime is None


@pytest.mark.asyncio
async def test_other_refusals_are_reported_and_left_to_reconnect() -> None:
    errors: list[LiveTrackError] = []
    client = _client(Session(user_id="me", token="t"), [], errors)
    runtime = await client.connect()
    assert isinstance(runtime, FakeRuntime)

    runtime.on_connection_change(False, "Server unavailable")
    await asyncio.sleep(0)

    assert len(errors) == 1
    assert isinstance(errors[0], StreamRefusedError)
    assert not runtime.stopped
    assert client.runtime is runtime

    # A later successful connect re-arms refusal reporting.
    runtime.on_connection_change(True, "Success")
    runtime.on_connection_change(False, "Keep alive timeout")
    assert isinstance(errors[1], StreamDisconnectedError)


@pytest.mark.asyncio
async def test_disconnect_releases_runtime_and_is_idempotent() -> None:
    client = _client(Session(user_id="me", token="t"), [])
    runtime = await client.connect()

    await client.disconnect()
    await client.disconnect()

    assert isinstance(runtime, FakeRuntime)
    assert runtime.stopped
    assert client.runtime is None


@pytest.mark.asyncio
async def test_reconnect_replaces_previous_runtime() -> None:
    client = _client(Session(user_id="me", token="t"), [])
    first = await client.connect()
    second = await client.connect()

    assert isinstance(first, FakeRuntime) and first.stopped
    assert client.runtime is second


def test_payload_codec() -> None:
    payload = {"userId": "u1", "coords": {"latitude": 1.5, "longitude": 2.5}}
    assert decode_stream_payload(encode_stream_payload(payload)) == payload
    with pytest.raises(ValueError):
        decode_stream_payload(b"[1, 2]")
    with pytest.raises(ValueError):
        decode_stream_payload(b"{not json")
