"""Gateway wiring: backend transport, message bus and vehicle sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

import aiohttp

from saic_gateway._codec import MessageCodec
from saic_gateway._mqtt import MqttCommand, MqttGatewayRuntime, bootstrap_from_config
from saic_gateway._redact import mask_vin
from saic_gateway._transport import HttpTransport, Transport
from saic_gateway.abrp import RoutePlanner
from saic_gateway.config import GatewayConfig
from saic_gateway.exceptions import SaicError, SaicPublishError
from saic_gateway.exchange import CorrelatedExchange
from saic_gateway.models.vehicle import VehicleMessage, VinInfo
from saic_gateway.session import Credentials
from saic_gateway.state import topics
from saic_gateway.state.facts import Fact, FactPublisher, MessageSink
from saic_gateway.state.vehicle import utcnow
from saic_gateway.vehicle_session import COMMAND_FAILED, VehicleSession

_logger = logging.getLogger(__name__)


class SaicGateway:
    """Bridges the telematics backend and the message bus.

    Usage::

        async with SaicGateway(config, codec=codec, credentials=creds) as gateway:
            for vin_info in vehicles:
                gateway.add_vehicle(vin_info)
            await gateway.run()

    Without an explicit *sink* the gateway connects to the broker from
    ``config.mqtt_uri`` and subscribes to the command topics of every vehicle.
    """

    def __init__(
        self,
        config: GatewayConfig,
        *,
        codec: MessageCodec,
        credentials: Credentials,
        route_planner: RoutePlanner | None = None,
        reauthenticate: Callable[[], Awaitable[Credentials]] | None = None,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        sink: MessageSink | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._config = config
        self._codec = codec
        self._credentials = credentials
        self._route_planner = route_planner
        self._reauthenticate_cb = reauthenticate
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._sink = sink
        self._clock = clock
        self._exchange: CorrelatedExchange | None = None
        self._mqtt_runtime: MqttGatewayRuntime | None = None
        self._sessions: dict[str, VehicleSession] = {}
        self._vehicle_tasks: dict[str, asyncio.Task[None]] = {}
        self._command_tasks: set[asyncio.Task[None]] = set()
        self._running = False
        self._vehicles_changed = asyncio.Event()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> SaicGateway:
        loop = asyncio.get_running_loop()
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.http_timeout)
        self._exchange = CorrelatedExchange(
            codec=self._codec,
            transport=self._transport,
            base_url=self._config.saic_uri,
            max_attempts=self._config.exchange_max_attempts,
            deadline=self._config.exchange_deadline,
            poll_interval=self._config.exchange_poll_interval,
        )
        if self._sink is None:
            runtime = MqttGatewayRuntime(
                loop=loop,
                on_command=self._on_mqtt_command,
                keepalive=self._config.mqtt_keepalive,
                logger=_logger,
            )
            runtime.start(bootstrap_from_config(self._config))
            self._mqtt_runtime = runtime
            self._sink = runtime
        return self

    async def __aexit__(self, *exc: Any) -> None:
        tasks = [*self._vehicle_tasks.values(), *self._command_tasks]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._vehicle_tasks.clear()
        self._command_tasks.clear()

        runtime = self._mqtt_runtime
        self._mqtt_runtime = None
        if runtime is not None:
            runtime.stop()
            self._sink = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None
        self._exchange = None

    # ------------------------------------------------------------------
    # Vehicles
    # ------------------------------------------------------------------

    def _require_exchange(self) -> CorrelatedExchange:
        if self._exchange is None or self._sink is None:
            raise SaicError("Gateway not initialized. Use 'async with SaicGateway(...) as gateway:'")
        return self._exchange

    @property
    def vins(self) -> list[str]:
        return list(self._sessions)

    def vehicle(self, vin: str) -> VehicleSession:
        try:
            return self._sessions[vin]
        except KeyError:
            raise SaicError(f"Unknown vehicle {vin}") from None

    def add_vehicle(self, vin_info: VinInfo) -> VehicleSession:
        """Register a vehicle; its loop starts right away when the gateway runs."""
        exchange = self._require_exchange()
        assert self._sink is not None  # noqa: S101
        if vin_info.vin in self._sessions:
            raise SaicError(f"Vehicle {vin_info.vin} already registered")

        session = VehicleSession(
            vin_info,
            exchange=exchange,
            credentials=self._credentials,
            publisher=FactPublisher(self._sink, self._config.vehicle_prefix(vin_info.vin)),
            refresh=self._config.refresh,
            idle_interval=self._config.idle_interval,
            route_planner=self._route_planner,
            abrp_api_key=self._config.abrp_api_key,
            abrp_user_token=self._config.abrp_user_token(vin_info.vin),
            reauthenticate=self._reauthenticate if self._reauthenticate_cb is not None else None,
            clock=self._clock,
        )
        self._sessions[vin_info.vin] = session
        _logger.info("Registered vehicle %s", mask_vin(vin_info.vin))
        if self._running:
            self._start_vehicle(vin_info.vin)
        return session

    def remove_vehicle(self, vin: str) -> None:
        self._sessions.pop(vin, None)
        task = self._vehicle_tasks.pop(vin, None)
        if task is not None:
            task.cancel()
        _logger.info("Removed vehicle %s", mask_vin(vin))

    async def _reauthenticate(self) -> Credentials:
        assert self._reauthenticate_cb is not None  # noqa: S101
        self._credentials = await self._reauthenticate_cb()
        return self._credentials

    # ------------------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------------------

    def _on_mqtt_command(self, command: MqttCommand) -> None:
        """Called on the loop thread via call_soon_threadsafe."""
        self.dispatch_command(command.topic, command.payload, retained=command.retained)

    def dispatch_command(self, topic: str, payload: bytes, *, retained: bool = False) -> asyncio.Task[None] | None:
        """Route a command on its absolute topic (``/set`` stripped) to its vehicle.

        Commands for an unregistered VIN are answered with a failure
        acknowledgement and not executed.
        """
        root = f"{self._config.mqtt_topic_prefix.rstrip('/')}/vehicles/"
        if not topic.startswith(root):
            _logger.debug("Ignoring command outside %s: %s", root, topic)
            return None
        vin, _, relative = topic[len(root) :].partition("/")
        if not vin or not relative:
            _logger.debug("Ignoring command without vehicle topic: %s", topic)
            return None
        session = self._sessions.get(vin)
        if session is None:
            _logger.warning("Rejecting command %s for unknown vehicle %s", relative, mask_vin(vin))
            self._reject_unknown_vehicle(vin, relative)
            return None

        task = asyncio.get_running_loop().create_task(
            session.handle_command(relative, payload, retained=retained),
            name=f"command-{vin}-{relative}",
        )
        self._command_tasks.add(task)
        task.add_done_callback(self._command_done)
        return task

    def _reject_unknown_vehicle(self, vin: str, relative: str) -> None:
        if self._sink is None:
            return
        publisher = FactPublisher(self._sink, self._config.vehicle_prefix(vin))
        text = COMMAND_FAILED.format(reason="Unknown vehicle")
        try:
            publisher.publish([Fact(topics.result_topic(relative), text, retained=False)])
        except SaicPublishError as exc:
            _logger.warning("Cannot acknowledge command for %s: %s", mask_vin(vin), exc)

    def _command_done(self, task: asyncio.Task[None]) -> None:
        self._command_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Command task %s crashed", task.get_name(), exc_info=exc)

    def notify_message(self, vin: str, message: VehicleMessage) -> None:
        """Forward an informational backend message to its vehicle."""
        self.vehicle(vin).notify_message(message)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def _start_vehicle(self, vin: str) -> None:
        session = self._sessions[vin]
        self._vehicle_tasks[vin] = asyncio.get_running_loop().create_task(session.run(), name=f"vehicle-{vin}")
        self._vehicles_changed.set()

    async def run(self) -> None:
        """Run every vehicle loop until all are removed or one fails.

        Vehicles added while running are watched from the next pass on.
        """
        self._require_exchange()
        self._running = True
        for vin in self._sessions:
            if vin not in self._vehicle_tasks:
                self._start_vehicle(vin)
        loop = asyncio.get_running_loop()
        try:
            while self._vehicle_tasks:
                self._vehicles_changed.clear()
                changed = loop.create_task(self._vehicles_changed.wait())
                try:
                    done, _ = await asyncio.wait(
                        {*self._vehicle_tasks.values(), changed},
                        return_when=asyncio.FIRST_COMPLETED,
                    )
                finally:
                    changed.cancel()
                for vin, task in list(self._vehicle_tasks.items()):
                    if task not in done:
                        continue
                    del self._vehicle_tasks[vin]
                    if task.cancelled():
                        continue
                    exc = task.exception()
                    if exc is not None:
                        _logger.error("Vehicle loop %s stopped: %s", mask_vin(vin), exc)
                        raise exc
        finally:
            self._running = False
