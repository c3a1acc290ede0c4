from __future__ import annotations

import pytest

from saic_gateway.config import GatewayConfig, RefreshDefaults, parse_mqtt_uri, parse_user_tokens
from saic_gateway.exceptions import SaicConfigError


def test_defaults() -> None:
    config = GatewayConfig()

    assert config.refresh == RefreshDefaults(active=30, inactive=86400, after_shutdown=600)
    assert config.vehicle_prefix("VIN1") == "saic/vehicles/VIN1"
    assert config.mqtt_endpoint.port == 1883


def test_from_env_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAIC_URI", "https://backend.example")
    monkeypatch.setenv("MQTT_URI", "ssl://broker.example")
    monkeypatch.setenv("MQTT_TOPIC", "cars")
    monkeypatch.setenv("ABRP_API_KEY", "key")
    monkeypatch.setenv("ABRP_USER_TOKEN", "VIN1=tok1, VIN2=tok2")
    monkeypatch.setenv("SAIC_REFRESH_PERIOD_INACTIVE", "43200")
    monkeypatch.setenv("SAIC_EXCHANGE_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("SAIC_EXCHANGE_DEADLINE", "12.5")

    config = GatewayConfig.from_env(mqtt_client_id="override")

    assert config.saic_uri == "https://backend.example"
    assert config.mqtt_endpoint.tls is True
    assert config.mqtt_endpoint.port == 8883
    assert config.vehicle_prefix("VIN1") == "cars/vehicles/VIN1"
    assert config.abrp_user_token("VIN2") == "tok2"
    assert config.abrp_user_token("VIN3") is None
    assert config.refresh.inactive == 43200
    assert config.refresh.active == 30
    assert config.exchange_max_attempts == 5
    assert config.exchange_deadline == 12.5
    assert config.mqtt_client_id == "override"


def test_from_env_rejects_invalid_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAIC_REFRESH_PERIOD_ACTIVE", "often")

    with pytest.raises(SaicConfigError):
        GatewayConfig.from_env()


def test_refresh_defaults_must_be_positive() -> None:
    with pytest.raises(SaicConfigError):
        RefreshDefaults(after_shutdown=0)


def test_exchange_bounds_are_validated() -> None:
    with pytest.raises(SaicConfigError):
        GatewayConfig(exchange_max_attempts=0)
    with pytest.raises(SaicConfigError):
        GatewayConfig(exchange_deadline=0)


@pytest.mark.parametrize(
    ("uri", "host", "port", "tls"),
    [
        ("tcp://localhost:1883", "localhost", 1883, False),
        ("mqtts://broker.example", "broker.example", 8883, True),
        ("broker.example:1999", "broker.example", 1999, False),
    ],
)
def test_parse_mqtt_uri(uri: str, host: str, port: int, tls: bool) -> None:
    endpoint = parse_mqtt_uri(uri)

    assert (endpoint.host, endpoint.port, endpoint.tls) == (host, port, tls)


def test_parse_mqtt_uri_rejects_unknown_scheme() -> None:
    with pytest.raises(SaicConfigError):
        parse_mqtt_uri("ws://broker.example")


def test_parse_user_tokens_rejects_malformed_entries() -> None:
    assert parse_user_tokens("") == {}
    with pytest.raises(SaicConfigError):
        parse_user_tokens("VIN1tok1")
