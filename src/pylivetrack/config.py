"""Tracker configuration for pylivetrack."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pydantic import ValidationError

from pylivetrack._constants import DEFAULT_REGION, ORS_BASE_URL, ORS_PROFILE, TOPIC_PREFIX
from pylivetrack.exceptions import LiveTrackConfigError
from pylivetrack.models.geo import RegionBounds


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _default_region() -> RegionBounds:
    min_lat, max_lat, min_lng, max_lng = DEFAULT_REGION
    return RegionBounds(min_lat=min_lat, max_lat=max_lat, min_lng=min_lng, max_lng=max_lng)


@dataclasses.dataclass(frozen=True)
class StreamConfig:
    """Location stream (MQTT broker) settings.

    Parameters
    ----------
    host : str
        Broker host name.
    port : int
        Broker port.
    tls : bool
        Wrap the connection in TLS.
    keepalive : int
        MQTT keepalive in seconds.
    topic_prefix : str
        Prefix for the ``<prefix>/locations/<userId>`` topics.
    reconnect_min_delay : float
        First reconnect delay in seconds after a drop.
    reconnect_max_delay : float
        Cap for the exponential reconnect backoff.
    """

    host: str = "localhost"
    port: int = 1883
    tls: bool = False
    keepalive: int = 60
    topic_prefix: str = TOPIC_PREFIX
    reconnect_min_delay: float = 1.0
    reconnect_max_delay: float = 120.0


@dataclasses.dataclass(frozen=True)
class SensorFilterConfig:
    """Minimum movement between successive local position emissions."""

    min_distance_m: float = 10.0
    min_interval_s: float = 5.0


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Tracker configuration.

    Parameters
    ----------
    region : RegionBounds
        Box in which provider routing is used. Pairs with a point
        outside it are joined with a straight line.
    ors_api_key : str or None
        OpenRouteService API key. ``None`` disables provider routing.
    ors_base_url : str
        OpenRouteService base URL.
    ors_profile : str
        Directions profile (e.g. ``"driving-car"``).
    provider_timeout : float
        Timeout in seconds for a single directions request.
    api_base_url : str or None
        Backend base URL for the tracked-users seed request.
    entity_ttl : float
        Seconds after which a silent entity is dropped. ``0`` disables
        expiry.
    stream : StreamConfig
        Location stream settings.
    sensor : SensorFilterConfig
        Local position emission filter.
    """

    region: RegionBounds = dataclasses.field(default_factory=_default_region)
    ors_api_key: str | None = None
    ors_base_url: str = ORS_BASE_URL
    ors_profile: str = ORS_PROFILE
    provider_timeout: float = 10.0
    api_base_url: str | None = None
    entity_ttl: float = 0.0
    stream: StreamConfig = dataclasses.field(default_factory=StreamConfig)
    sensor: SensorFilterConfig = dataclasses.field(default_factory=SensorFilterConfig)

    def __post_init__(self) -> None:
        if self.provider_timeout <= 0:
            raise LiveTrackConfigError(f"provider_timeout must be positive, got {self.provider_timeout}")
        if self.entity_ttl < 0:
            raise LiveTrackConfigError(f"entity_ttl must not be negative, got {self.entity_ttl}")
        if self.sensor.min_distance_m < 0 or self.sensor.min_interval_s < 0:
            raise LiveTrackConfigError("sensor filter values must not be negative")
        if self.stream.reconnect_min_delay <= 0 or self.stream.reconnect_max_delay < self.stream.reconnect_min_delay:
            raise LiveTrackConfigError("stream reconnect delays must satisfy 0 < min <= max")

    @property
    def provider_routing_enabled(self) -> bool:
        return bool(self.ors_api_key)

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from ``LIVETRACK_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        LiveTrackConfigError
            If a variable holds an unparseable value.
        """
        env = os.environ

        try:
            stream_kwargs: dict[str, Any] = {}
            _ENV_STREAM_MAP = {
                "LIVETRACK_STREAM_HOST": ("host", str),
                "LIVETRACK_STREAM_PORT": ("port", int),
                "LIVETRACK_STREAM_KEEPALIVE": ("keepalive", int),
                "LIVETRACK_STREAM_TOPIC_PREFIX": ("topic_prefix", str),
                "LIVETRACK_STREAM_RECONNECT_MIN": ("reconnect_min_delay", float),
                "LIVETRACK_STREAM_RECONNECT_MAX": ("reconnect_max_delay", float),
            }
            for env_key, (field_name, convert) in _ENV_STREAM_MAP.items():
                val = env.get(env_key)
                if val is not None:
                    stream_kwargs[field_name] = convert(val)
            tls_env = env.get("LIVETRACK_STREAM_TLS")
            if tls_env is not None:
                stream_kwargs["tls"] = _env_bool(tls_env, False)

            stream_overrides = overrides.pop("stream", None)
            if isinstance(stream_overrides, dict):
                stream_kwargs.update(stream_overrides)
            elif isinstance(stream_overrides, StreamConfig):
                stream_kwargs = dataclasses.asdict(stream_overrides)

            sensor_kwargs: dict[str, float] = {}
            distance_env = env.get("LIVETRACK_SENSOR_MIN_DISTANCE")
            if distance_env is not None:
                sensor_kwargs["min_distance_m"] = float(distance_env)
            interval_env = env.get("LIVETRACK_SENSOR_MIN_INTERVAL")
            if interval_env is not None:
                sensor_kwargs["min_interval_s"] = float(interval_env)

            sensor_overrides = overrides.pop("sensor", None)
            if isinstance(sensor_overrides, dict):
                sensor_kwargs.update(sensor_overrides)
            elif isinstance(sensor_overrides, SensorFilterConfig):
                sensor_kwargs = dataclasses.asdict(sensor_overrides)

            config_kwargs: dict[str, Any] = {
                "stream": StreamConfig(**stream_kwargs),
                "sensor": SensorFilterConfig(**sensor_kwargs),
            }

            _ENV_CONFIG_MAP = {
                "LIVETRACK_ORS_API_KEY": "ors_api_key",
                "LIVETRACK_ORS_BASE_URL": "ors_base_url",
                "LIVETRACK_ORS_PROFILE": "ors_profile",
                "LIVETRACK_API_BASE_URL": "api_base_url",
            }
            for env_key, field_name in _ENV_CONFIG_MAP.items():
                val = env.get(env_key)
                if val is not None:
                    config_kwargs[field_name] = val

            region_env = env.get("LIVETRACK_REGION")
            if region_env is not None and "region" not in overrides:
                config_kwargs["region"] = RegionBounds.parse(region_env)

            timeout_env = env.get("LIVETRACK_PROVIDER_TIMEOUT")
            if timeout_env is not None and "provider_timeout" not in overrides:
                config_kwargs["provider_timeout"] = float(timeout_env)

            ttl_env = env.get("LIVETRACK_ENTITY_TTL")
            if ttl_env is not None and "entity_ttl" not in overrides:
                config_kwargs["entity_ttl"] = float(ttl_env)
        except (ValueError, ValidationError) as exc:
            raise LiveTrackConfigError(f"Invalid LIVETRACK_* environment value: {exc}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
