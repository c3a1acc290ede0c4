from __future__ import annotations

import asyncio

import pytest

from saic_gateway._codec import PayloadKind
from saic_gateway._mqtt import MqttGatewayRuntime, command_subscriptions, strip_set_suffix
from saic_gateway.config import GatewayConfig
from saic_gateway.exceptions import SaicError, SaicPublishError, SaicSessionExpiredError
from saic_gateway.gateway import SaicGateway
from saic_gateway.models.message import ProtocolMessage, RequestTemplate
from saic_gateway.models.refresh import RefreshMode
from saic_gateway.models.vehicle import VehicleMessage, VinInfo
from saic_gateway.session import Credentials

_VIN = "LSJA0000000000001"


class _RecordingSink:
    def __init__(self) -> None:
        self.messages: list[tuple[str, bytes, bool, int]] = []

    def publish(self, topic: str, payload: bytes, *, retained: bool, qos: int) -> None:
        self.messages.append((topic, payload, retained, qos))

    def payloads(self, topic: str) -> list[str]:
        return [payload.decode() for t, payload, _, _ in self.messages if t == topic]


class _FixedCodec:
    def __init__(self, response: ProtocolMessage) -> None:
        self._response = response
        self.kinds: list[PayloadKind] = []

    def encode(self, kind: PayloadKind, template: RequestTemplate) -> bytes:
        self.kinds.append(kind)
        return b"request"

    def decode(self, kind: PayloadKind, data: bytes) -> ProtocolMessage:
        return self._response


class _GarbledCodec(_FixedCodec):
    def __init__(self) -> None:
        super().__init__(ProtocolMessage())

    def decode(self, kind: PayloadKind, data: bytes) -> ProtocolMessage:
        raise ValueError("cannot decode payload")


class _EchoTransport:
    def __init__(self) -> None:
        self.urls: list[str] = []

    async def send(self, url: str, data: bytes) -> bytes:
        self.urls.append(url)
        return b"response"


def _gateway(
    response: ProtocolMessage | None = None,
    sink: _RecordingSink | None = None,
    transport: _EchoTransport | None = None,
    codec: _FixedCodec | None = None,
) -> SaicGateway:
    config = GatewayConfig(
        saic_uri="https://backend.example",
        mqtt_topic_prefix="saic",
        exchange_poll_interval=0,
        idle_interval=0.01,
    )
    return SaicGateway(
        config,
        codec=codec or _FixedCodec(response or ProtocolMessage(application_data={"rvcReqSts": 1})),
        credentials=Credentials(uid="uid-1", token="token-1"),
        transport=transport or _EchoTransport(),
        sink=sink or _RecordingSink(),
    )


def test_command_subscriptions_cover_both_topic_depths() -> None:
    assert command_subscriptions("saic/") == (
        "saic/vehicles/+/+/+/set",
        "saic/vehicles/+/+/+/+/set",
    )


def test_strip_set_suffix() -> None:
    assert strip_set_suffix("saic/vehicles/VIN/doors/locked/set") == "saic/vehicles/VIN/doors/locked"
    assert strip_set_suffix("saic/vehicles/VIN/doors/locked") is None


def test_runtime_publish_requires_started_client() -> None:
    runtime = MqttGatewayRuntime(loop=None, on_command=lambda _command: None)  # type: ignore[arg-type]

    with pytest.raises(SaicPublishError):
        runtime.publish("saic/x", b"1", retained=True, qos=0)


@pytest.mark.asyncio
async def test_add_vehicle_requires_context() -> None:
    gateway = _gateway()

    with pytest.raises(SaicError):
        gateway.add_vehicle(VinInfo(vin=_VIN))


@pytest.mark.asyncio
async def test_add_vehicle_publishes_under_vehicle_prefix() -> None:
    sink = _RecordingSink()

    async with _gateway(sink=sink) as gateway:
        gateway.add_vehicle(VinInfo(vin=_VIN))
        with pytest.raises(SaicError):
            gateway.add_vehicle(VinInfo(vin=_VIN))

    assert gateway.vins == [_VIN]
    assert sink.payloads(f"saic/vehicles/{_VIN}/refresh/mode") == ["periodic"]


@pytest.mark.asyncio
async def test_commands_are_routed_to_their_vehicle() -> None:
    sink = _RecordingSink()
    transport = _EchoTransport()

    async with _gateway(sink=sink, transport=transport) as gateway:
        gateway.add_vehicle(VinInfo(vin=_VIN))
        task = gateway.dispatch_command(f"saic/vehicles/{_VIN}/doors/locked", b"true")
        assert task is not None
        await task

    assert transport.urls == ["https://backend.example/TAP.Web/ota.mpv21"]
    assert sink.payloads(f"saic/vehicles/{_VIN}/doors/locked/result") == ["Success"]


@pytest.mark.asyncio
async def test_commands_for_unknown_vehicles_are_rejected() -> None:
    sink = _RecordingSink()
    transport = _EchoTransport()

    async with _gateway(sink=sink, transport=transport) as gateway:
        gateway.add_vehicle(VinInfo(vin=_VIN))
        sink.messages.clear()

        assert gateway.dispatch_command("saic/vehicles/OTHER/doors/locked", b"true") is None

    assert transport.urls == []
    assert sink.payloads("saic/vehicles/OTHER/doors/locked/result") == ["Command failed. Unknown vehicle"]
    assert sink.messages[0][2] is False


@pytest.mark.asyncio
async def test_commands_outside_the_prefix_are_ignored() -> None:
    sink = _RecordingSink()

    async with _gateway(sink=sink) as gateway:
        gateway.add_vehicle(VinInfo(vin=_VIN))
        sink.messages.clear()

        assert gateway.dispatch_command("other/vehicles/VIN/doors/locked", b"true") is None
        assert gateway.dispatch_command("saic/vehicles/VIN", b"true") is None

    assert sink.messages == []


@pytest.mark.asyncio
async def test_notify_message_forwards_to_vehicle() -> None:
    sink = _RecordingSink()

    async with _gateway(sink=sink) as gateway:
        gateway.add_vehicle(VinInfo(vin=_VIN))
        gateway.notify_message(
            _VIN,
            VehicleMessage(message_id=1, title="Charging finished", message_time=1_775_000_000),
        )
        with pytest.raises(SaicError):
            gateway.notify_message("OTHER", VehicleMessage(message_id=2, message_time=1_775_000_000))

    assert len(sink.payloads(f"saic/vehicles/{_VIN}/info/lastMessage")) == 1


@pytest.mark.asyncio
async def test_remove_vehicle() -> None:
    async with _gateway() as gateway:
        gateway.add_vehicle(VinInfo(vin=_VIN))
        gateway.remove_vehicle(_VIN)

        assert gateway.vins == []
        assert gateway.dispatch_command(f"saic/vehicles/{_VIN}/doors/locked", b"true") is None


@pytest.mark.asyncio
async def test_run_escalates_session_expiry() -> None:
    expired = ProtocolMessage(error_present=True, result_code=2, error_text=b"session expired")

    async with _gateway(response=expired) as gateway:
        gateway.add_vehicle(VinInfo(vin=_VIN))
        with pytest.raises(SaicSessionExpiredError):
            await gateway.run()


@pytest.mark.asyncio
async def test_run_watches_vehicles_added_while_running() -> None:
    expired = ProtocolMessage(error_present=True, result_code=2, error_text=b"session expired")

    async with _gateway(response=expired) as gateway:
        gateway.add_vehicle(VinInfo(vin=_VIN)).scheduler.set_mode(RefreshMode.OFF)
        runner = asyncio.create_task(gateway.run())
        await asyncio.sleep(0.05)
        assert not runner.done()

        gateway.add_vehicle(VinInfo(vin="LSJA0000000000002"))

        with pytest.raises(SaicSessionExpiredError):
            await asyncio.wait_for(runner, timeout=2)


@pytest.mark.asyncio
async def test_undecodable_command_response_is_acknowledged() -> None:
    sink = _RecordingSink()

    async with _gateway(sink=sink, codec=_GarbledCodec()) as gateway:
        gateway.add_vehicle(VinInfo(vin=_VIN))
        task = gateway.dispatch_command(f"saic/vehicles/{_VIN}/doors/locked", b"true")
        assert task is not None
        await task

    results = sink.payloads(f"saic/vehicles/{_VIN}/doors/locked/result")
    assert len(results) == 1
    assert results[0].startswith("Command failed. ")
    assert "cannot decode payload" in results[0]


@pytest.mark.asyncio
async def test_undecodable_refresh_response_keeps_gateway_running() -> None:
    transport = _EchoTransport()

    async with _gateway(transport=transport, codec=_GarbledCodec()) as gateway:
        gateway.add_vehicle(VinInfo(vin=_VIN))
        runner = asyncio.create_task(gateway.run())
        await asyncio.sleep(0.1)

        assert not runner.done()
        assert transport.urls == ["https://backend.example/TAP.Web/ota.mpv21"]

        runner.cancel()
        with pytest.raises(asyncio.CancelledError):
            await runner
