from __future__ import annotations

import pytest

from saic_gateway.commands import (
    HvBatteryAction,
    RefreshModeAction,
    RefreshPeriodAction,
    RemoteCommandAction,
    parse_command,
)
from saic_gateway.exceptions import SaicCommandRejectedError
from saic_gateway.models.command import ClimateCommand, RemoteCommandRequest, RvcRequestType
from saic_gateway.models.refresh import RefreshMode


def test_lock_command_has_no_parameters() -> None:
    action = parse_command("doors/locked", b"true", retained=False)

    assert isinstance(action, RemoteCommandAction)
    assert action.request.rvc_req_type is RvcRequestType.DOOR_LOCK
    assert action.request.parameters == {}


def test_unlock_command_parameters() -> None:
    action = parse_command("doors/locked", b"FALSE", retained=False)

    assert isinstance(action, RemoteCommandAction)
    assert action.request.rvc_req_type is RvcRequestType.DOOR_UNLOCK
    assert action.request.parameters == {
        4: b"\x00",
        5: b"\x00",
        6: b"\x00",
        7: b"\x03",
        255: b"\x00",
    }


@pytest.mark.parametrize(
    ("payload", "mode", "temperature"),
    [(b"off", 0, 0), (b"On", 2, 8), (b"front", 5, 8)],
)
def test_climate_command_parameters(payload: bytes, mode: int, temperature: int) -> None:
    action = parse_command("climate/remoteClimateState", payload, retained=False)

    assert isinstance(action, RemoteCommandAction)
    assert action.request.rvc_req_type is RvcRequestType.CLIMATE
    assert action.request.parameters == {19: bytes([mode]), 20: bytes([temperature]), 255: b"\x00"}


def test_climate_parameters_are_sorted_by_id() -> None:
    request = RemoteCommandRequest.climate(ClimateCommand.FRONT)

    assert [param.param_id for param in request.rvc_params] == [19, 20, 255]


def test_hv_battery_override() -> None:
    assert parse_command("drivetrain/hvBatteryActive", b"True", retained=False) == HvBatteryAction(True)
    assert parse_command("drivetrain/hvBatteryActive", b"false", retained=False) == HvBatteryAction(False)


def test_refresh_controls() -> None:
    assert parse_command("refresh/mode", b"FORCE", retained=False) == RefreshModeAction(RefreshMode.FORCE)
    assert parse_command("refresh/period/inActive", b"3600", retained=False) == RefreshPeriodAction(
        "refresh/period/inActive", 3600
    )


def test_retained_commands_are_rejected() -> None:
    with pytest.raises(SaicCommandRejectedError, match="Message may not be retained"):
        parse_command("doors/locked", b"true", retained=True)


def test_unknown_topic_is_rejected() -> None:
    with pytest.raises(SaicCommandRejectedError, match="Unsupported topic"):
        parse_command("doors/boot", b"true", retained=False)


@pytest.mark.parametrize(
    ("topic", "payload"),
    [
        ("doors/locked", b"yes"),
        ("climate/remoteClimateState", b"rear"),
        ("drivetrain/hvBatteryActive", b"1"),
        ("refresh/mode", b"sometimes"),
        ("refresh/period/active", b"0"),
        ("refresh/period/active", b"soon"),
        ("doors/locked", b"\xff\xfe"),
        ("doors/locked", b"true\n"),
        ("climate/remoteClimateState", b" on"),
        ("refresh/period/active", b" 60\n"),
        ("refresh/period/active", b"+60"),
    ],
)
def test_unsupported_payloads_are_rejected(topic: str, payload: bytes) -> None:
    with pytest.raises(SaicCommandRejectedError, match="Unsupported payload"):
        parse_command(topic, payload, retained=False)
