"""Internal MQTT runtime for the location stream."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pylivetrack._redact import redact_for_log
from pylivetrack.exceptions import StreamError


@dataclass(frozen=True)
class StreamBootstrap:
    """Broker/session data required to connect to the location stream."""

    host: str
    port: int
    tls: bool
    keepalive: int
    client_id: str
    username: str
    password: str
    subscribe_topic: str
    reconnect_min_delay: float
    reconnect_max_delay: float


def decode_stream_payload(payload: bytes) -> dict[str, Any]:
    """Decode a stream payload into a JSON object."""
    parsed = json.loads(payload.decode("utf-8"))
    if not isinstance(parsed, dict):
        raise ValueError("Stream payload is not a JSON object")
    return parsed


def encode_stream_payload(payload: Mapping[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode("utf-8")


class LocationStreamRuntime:
    """Threaded paho-mqtt runtime that hands decoded messages to an asyncio loop.

    Callbacks run on paho's network thread; everything user-visible is
    rescheduled onto *loop* with ``call_soon_threadsafe``.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_payload: Callable[[str, dict[str, Any]], None],
        on_connection_change: Callable[[bool, str], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_payload = on_payload
        self._on_connection_change = on_connection_change
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._topic: str | None = None

    @property
    def is_running(self) -> bool:
        """Whether the network loop is active (it may be reconnecting)."""
        return self._running

    def start(self, bootstrap: StreamBootstrap) -> None:
        """Connect, subscribe and start the network loop.

        Raises
        ------
        StreamError
            If the initial connection attempt fails.
        """
        self.stop()
        self._logger.debug(
            "Stream start requested host=%s port=%s topic=%s client_id=%s",
            bootstrap.host,
            bootstrap.port,
            bootstrap.subscribe_topic,
            bootstrap.client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=bootstrap.client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        # The bearer token authenticates the connection.
        client.username_pw_set(bootstrap.username, bootstrap.password)
        if bootstrap.tls:
            client.tls_set()
        client.reconnect_delay_set(
            min_delay=max(1, int(bootstrap.reconnect_min_delay)),
            max_delay=max(1, int(bootstrap.reconnect_max_delay)),
        )

        self._topic = bootstrap.subscribe_topic

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.is_failure:
                self._logger.warning("Stream connect failed: %s", reason_code)
                self._loop.call_soon_threadsafe(self._on_connection_change, False, str(reason_code))
                return
            self._logger.debug("Stream connected reason=%s", reason_code)
            if self._topic:
                # Subscribing on every connect restores the subscription after a reconnect.
                c.subscribe(self._topic, qos=1)
            self._loop.call_soon_threadsafe(self._on_connection_change, True, str(reason_code))

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                payload = decode_stream_payload(msg.payload)
            except ValueError:
                self._logger.debug("Stream payload parse failure topic=%s", msg.topic, exc_info=True)
                return
            self._logger.debug("Received PUBLISH topic=%s payload=%s", msg.topic, redact_for_log(payload))
            self._loop.call_soon_threadsafe(self._on_payload, msg.topic, payload)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.warning("Stream disconnected: %s", reason_code)
                self._loop.call_soon_threadsafe(self._on_connection_change, False, str(reason_code))

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        try:
            client.connect(bootstrap.host, bootstrap.port, keepalive=bootstrap.keepalive)
        except (OSError, ValueError) as exc:
            raise StreamError(f"Stream connect to {bootstrap.host}:{bootstrap.port} failed: {exc}") from exc
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("Stream network loop started")

    def publish(self, topic: str, payload: Mapping[str, Any]) -> bool:
        """Queue *payload* for delivery (QoS 1); returns whether it was accepted."""
        client = self._client
        if client is None or not self._running:
            return False
        info = client.publish(topic, encode_stream_payload(payload), qos=1)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            self._logger.debug("Stream publish rejected rc=%s topic=%s", info.rc, topic)
            return False
        return True

    def stop(self) -> None:
        """Stop and disconnect the current client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._topic = None

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("Stream disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("Stream network loop stopped")
