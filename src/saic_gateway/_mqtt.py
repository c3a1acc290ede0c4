"""Internal MQTT runtime: publishes facts and receives command messages."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from saic_gateway.config import GatewayConfig, MqttEndpoint
from saic_gateway.exceptions import SaicPublishError
from saic_gateway.state.topics import SET_SUFFIX


@dataclass(frozen=True)
class MqttCommand:
    """Inbound command message with the ``/set`` suffix stripped."""

    topic: str
    payload: bytes
    retained: bool


@dataclass(frozen=True)
class MqttBootstrap:
    """Broker connection details."""

    endpoint: MqttEndpoint
    client_id: str
    username: str | None
    password: str | None
    subscriptions: tuple[str, ...]


def command_subscriptions(prefix: str) -> tuple[str, ...]:
    """Wildcard subscriptions covering two- and three-level command topics."""
    root = f"{prefix.rstrip('/')}/vehicles"
    return (f"{root}/+/+/+/{SET_SUFFIX}", f"{root}/+/+/+/+/{SET_SUFFIX}")


def bootstrap_from_config(config: GatewayConfig) -> MqttBootstrap:
    return MqttBootstrap(
        endpoint=config.mqtt_endpoint,
        client_id=config.mqtt_client_id,
        username=config.mqtt_username,
        password=config.mqtt_password,
        subscriptions=command_subscriptions(config.mqtt_topic_prefix),
    )


def strip_set_suffix(topic: str) -> str | None:
    suffix = f"/{SET_SUFFIX}"
    if not topic.endswith(suffix):
        return None
    return topic[: -len(suffix)]


class MqttGatewayRuntime:
    """Threaded paho-mqtt runtime that hands command messages to an asyncio loop.

    Implements the message sink: :meth:`publish` may be called from the loop
    thread while paho's network thread is running.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_command: Callable[[MqttCommand], None],
        keepalive: int = 60,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_command = on_command
        self._keepalive = keepalive
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._subscriptions: Sequence[str] = ()

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def start(self, bootstrap: MqttBootstrap) -> None:
        """Connect, subscribe to command topics and start the network loop.

        paho reconnects on its own; subscriptions are renewed on every
        (re)connect.
        """
        self.stop()
        endpoint = bootstrap.endpoint
        self._logger.info(
            "Connecting to MQTT broker %s:%s (tls=%s) as %s",
            endpoint.host,
            endpoint.port,
            endpoint.tls,
            bootstrap.client_id,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=bootstrap.client_id,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        if bootstrap.username is not None:
            client.username_pw_set(bootstrap.username, bootstrap.password)
        if endpoint.tls:
            client.tls_set()
        client.reconnect_delay_set(min_delay=1, max_delay=60)
        client.on_connect = self._handle_connect
        client.on_message = self._handle_message
        client.on_disconnect = self._handle_disconnect

        self._subscriptions = bootstrap.subscriptions
        client.connect(endpoint.host, endpoint.port, keepalive=self._keepalive)
        client.loop_start()
        self._client = client
        self._running = True

    # paho callbacks, invoked on the network thread

    def _handle_connect(self, client: mqtt.Client, _userdata: Any, _flags: Any, reason_code: Any, _props: Any) -> None:
        if reason_code.is_failure:
            self._logger.warning("MQTT connect refused: %s", reason_code)
            return
        self._logger.debug("MQTT connected, subscribing %s", ", ".join(self._subscriptions))
        for topic in self._subscriptions:
            client.subscribe(topic, qos=0)

    def _handle_message(self, _client: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        topic = strip_set_suffix(msg.topic)
        if topic is None:
            self._logger.debug("Ignoring MQTT message on %s", msg.topic)
            return
        command = MqttCommand(topic=topic, payload=bytes(msg.payload), retained=bool(msg.retain))
        self._logger.debug("Received command topic=%s retained=%s", topic, command.retained)
        self._loop.call_soon_threadsafe(self._on_command, command)

    def _handle_disconnect(
        self,
        _client: mqtt.Client,
        _userdata: Any,
        _flags: Any,
        reason_code: Any,
        _props: Any,
    ) -> None:
        if self._running:
            self._logger.warning("MQTT connection lost (%s), reconnecting", reason_code)

    def publish(self, topic: str, payload: bytes, *, retained: bool, qos: int) -> None:
        client = self._client
        if client is None:
            raise SaicPublishError(f"Cannot publish {topic}: MQTT runtime not started")
        info = client.publish(topic, payload, qos=qos, retain=retained)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise SaicPublishError(f"Publishing {topic} failed: {mqtt.error_string(info.rc)}")

    def stop(self) -> None:
        """Disconnect and stop the network thread; a no-op when not started."""
        client, self._client = self._client, None
        if client is None:
            return
        self._running = False
        self._subscriptions = ()
        try:
            client.disconnect()
        finally:
            client.loop_stop()
            self._logger.info("MQTT runtime stopped")
