"""Gateway configuration for saic_gateway."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from saic_gateway._constants import (
    BASE_URL,
    DEFAULT_REFRESH_PERIOD_ACTIVE,
    DEFAULT_REFRESH_PERIOD_AFTER_SHUTDOWN,
    DEFAULT_REFRESH_PERIOD_INACTIVE,
)
from saic_gateway.exceptions import SaicConfigError

_MQTT_SCHEMES: dict[str, tuple[bool, int]] = {
    "tcp": (False, 1883),
    "mqtt": (False, 1883),
    "ssl": (True, 8883),
    "tls": (True, 8883),
    "mqtts": (True, 8883),
}


def _env_int(env: Mapping[str, str], key: str) -> int | None:
    value = env.get(key)
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError as exc:
        raise SaicConfigError(f"{key} must be an integer, got {value!r}") from exc


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    value = env.get(key)
    if value is None:
        return None
    try:
        return float(value.strip())
    except ValueError as exc:
        raise SaicConfigError(f"{key} must be a number, got {value!r}") from exc


def parse_user_tokens(value: str | None) -> dict[str, str]:
    """Parse ``vin=token,vin=token`` into a mapping."""
    if not value:
        return {}
    tokens: dict[str, str] = {}
    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        vin, sep, token = entry.partition("=")
        if not sep or not vin.strip() or not token.strip():
            raise SaicConfigError(f"Invalid user token entry {entry!r}, expected vin=token")
        tokens[vin.strip()] = token.strip()
    return tokens


@dataclasses.dataclass(frozen=True)
class MqttEndpoint:
    """Broker location parsed from an ``MQTT_URI``."""

    host: str
    port: int
    tls: bool


def parse_mqtt_uri(uri: str) -> MqttEndpoint:
    """Parse ``tcp://host:1883`` / ``ssl://host:8883`` style broker URIs."""
    value = uri.strip()
    if not value:
        raise SaicConfigError("MQTT URI is empty")

    scheme = "tcp"
    if "://" in value:
        scheme, value = value.split("://", 1)
        scheme = scheme.lower()
    if scheme not in _MQTT_SCHEMES:
        raise SaicConfigError(f"Unsupported MQTT URI scheme {scheme!r}")
    tls, default_port = _MQTT_SCHEMES[scheme]

    if "/" in value:
        value = value.split("/", 1)[0]
    host, _, maybe_port = value.rpartition(":")
    if host and maybe_port.isdigit():
        return MqttEndpoint(host=host, port=int(maybe_port), tls=tls)
    if not value:
        raise SaicConfigError(f"MQTT URI {uri!r} has no host")
    return MqttEndpoint(host=value, port=default_port, tls=tls)


@dataclasses.dataclass(frozen=True)
class RefreshDefaults:
    """Initial refresh periods (seconds) applied to every new vehicle.

    Operators can change them per vehicle at runtime through the
    ``refresh/period/*`` control topics.
    """

    active: int = DEFAULT_REFRESH_PERIOD_ACTIVE
    inactive: int = DEFAULT_REFRESH_PERIOD_INACTIVE
    after_shutdown: int = DEFAULT_REFRESH_PERIOD_AFTER_SHUTDOWN

    def __post_init__(self) -> None:
        for name in ("active", "inactive", "after_shutdown"):
            if getattr(self, name) <= 0:
                raise SaicConfigError(f"refresh period {name} must be positive")


@dataclasses.dataclass(frozen=True)
class GatewayConfig:
    """Gateway configuration.

    Parameters
    ----------
    saic_uri : str
        Base URL of the telematics backend.
    mqtt_uri : str
        Broker URI (``tcp://``, ``ssl://`` or ``mqtts://``).
    mqtt_username : str or None
        Broker user name.
    mqtt_password : str or None
        Broker password.
    mqtt_client_id : str
        MQTT client identifier.
    mqtt_topic_prefix : str
        Root of every published topic. Vehicle topics live under
        ``<prefix>/vehicles/<vin>/``.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    abrp_api_key : str or None
        Route planner API key. Pushing is disabled when unset.
    abrp_user_tokens : Mapping[str, str]
        Route planner user token per VIN.
    refresh : RefreshDefaults
        Initial refresh periods.
    exchange_max_attempts : int
        Maximum number of requests sent within one correlated exchange.
    exchange_deadline : float
        Seconds after which a correlated exchange is given up.
    exchange_poll_interval : float
        Seconds to wait between resubmissions. ``0`` resubmits immediately.
    idle_interval : float
        Seconds the vehicle loop sleeps when no refresh is due.
    http_timeout : float
        Total timeout for a single HTTP request.
    """

    saic_uri: str = BASE_URL
    mqtt_uri: str = "tcp://localhost:1883"
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_client_id: str = "saic-mqtt-gateway"
    mqtt_topic_prefix: str = "saic"
    mqtt_keepalive: int = 60
    abrp_api_key: str | None = None
    abrp_user_tokens: Mapping[str, str] = dataclasses.field(default_factory=dict)
    refresh: RefreshDefaults = dataclasses.field(default_factory=RefreshDefaults)
    exchange_max_attempts: int = 30
    exchange_deadline: float = 120.0
    exchange_poll_interval: float = 1.0
    idle_interval: float = 1.0
    http_timeout: float = 30.0

    def __post_init__(self) -> None:
        if self.exchange_max_attempts < 1:
            raise SaicConfigError("exchange_max_attempts must be at least 1")
        if self.exchange_deadline <= 0:
            raise SaicConfigError("exchange_deadline must be positive")
        if self.exchange_poll_interval < 0:
            raise SaicConfigError("exchange_poll_interval must not be negative")
        if self.idle_interval <= 0:
            raise SaicConfigError("idle_interval must be positive")
        if not self.mqtt_topic_prefix.strip("/"):
            raise SaicConfigError("mqtt_topic_prefix must not be empty")

    @property
    def mqtt_endpoint(self) -> MqttEndpoint:
        return parse_mqtt_uri(self.mqtt_uri)

    def vehicle_prefix(self, vin: str) -> str:
        """Topic prefix of a single vehicle."""
        return f"{self.mqtt_topic_prefix.rstrip('/')}/vehicles/{vin}"

    def abrp_user_token(self, vin: str) -> str | None:
        return self.abrp_user_tokens.get(vin)

    @classmethod
    def from_env(cls, **overrides: Any) -> GatewayConfig:
        """Create configuration from environment variables.

        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        GatewayConfig
            Populated configuration.
        """
        env = os.environ

        refresh_kwargs: dict[str, int] = {}
        _ENV_REFRESH_MAP = {
            "SAIC_REFRESH_PERIOD_ACTIVE": "active",
            "SAIC_REFRESH_PERIOD_INACTIVE": "inactive",
            "SAIC_REFRESH_PERIOD_AFTER_SHUTDOWN": "after_shutdown",
        }
        for env_key, field_name in _ENV_REFRESH_MAP.items():
            val = _env_int(env, env_key)
            if val is not None:
                refresh_kwargs[field_name] = val

        refresh_overrides = overrides.pop("refresh", None)
        if isinstance(refresh_overrides, dict):
            refresh_kwargs.update(refresh_overrides)
        elif isinstance(refresh_overrides, RefreshDefaults):
            refresh_kwargs = dataclasses.asdict(refresh_overrides)

        _ENV_CONFIG_MAP = {
            "SAIC_URI": "saic_uri",
            "MQTT_URI": "mqtt_uri",
            "MQTT_USER": "mqtt_username",
            "MQTT_PASSWORD": "mqtt_password",
            "MQTT_CLIENT_ID": "mqtt_client_id",
            "MQTT_TOPIC": "mqtt_topic_prefix",
            "ABRP_API_KEY": "abrp_api_key",
        }
        config_kwargs: dict[str, Any] = {"refresh": RefreshDefaults(**refresh_kwargs)}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        if "abrp_user_tokens" not in overrides:
            config_kwargs["abrp_user_tokens"] = parse_user_tokens(env.get("ABRP_USER_TOKEN"))

        keepalive = _env_int(env, "MQTT_KEEPALIVE")
        if keepalive is not None:
            config_kwargs["mqtt_keepalive"] = keepalive

        max_attempts = _env_int(env, "SAIC_EXCHANGE_MAX_ATTEMPTS")
        if max_attempts is not None:
            config_kwargs["exchange_max_attempts"] = max_attempts

        _ENV_FLOAT_MAP = {
            "SAIC_EXCHANGE_DEADLINE": "exchange_deadline",
            "SAIC_EXCHANGE_POLL_INTERVAL": "exchange_poll_interval",
            "SAIC_IDLE_INTERVAL": "idle_interval",
            "SAIC_HTTP_TIMEOUT": "http_timeout",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            fval = _env_float(env, env_key)
            if fval is not None:
                config_kwargs[field_name] = fval

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
