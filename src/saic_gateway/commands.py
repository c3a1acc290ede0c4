"""Parsing of inbound command messages.

Commands arrive as ``(topic, payload)`` pairs, the topic being relative to
the vehicle prefix with the ``/set`` suffix already stripped.
"""

from __future__ import annotations

from dataclasses import dataclass

from saic_gateway.exceptions import SaicCommandRejectedError
from saic_gateway.models.command import ClimateCommand, RemoteCommandRequest
from saic_gateway.models.refresh import RefreshMode
from saic_gateway.state import topics

_BOOLEANS: dict[str, bool] = {"true": True, "false": False}


@dataclass(frozen=True)
class RemoteCommandAction:
    """Send a remote vehicle control request."""

    request: RemoteCommandRequest


@dataclass(frozen=True)
class HvBatteryAction:
    """Override the HV battery active flag."""

    active: bool


@dataclass(frozen=True)
class RefreshModeAction:
    mode: RefreshMode


@dataclass(frozen=True)
class RefreshPeriodAction:
    topic: str
    seconds: int


CommandAction = RemoteCommandAction | HvBatteryAction | RefreshModeAction | RefreshPeriodAction

_PERIOD_TOPICS = frozenset(
    {
        topics.REFRESH_PERIOD_ACTIVE,
        topics.REFRESH_PERIOD_INACTIVE,
        topics.REFRESH_PERIOD_INACTIVE_GRACE,
    }
)

COMMAND_TOPICS = frozenset(
    {
        topics.DOORS_LOCKED,
        topics.CLIMATE_REMOTE_CLIMATE_STATE,
        topics.DRIVETRAIN_HV_BATTERY_ACTIVE,
        topics.REFRESH_MODE,
    }
    | _PERIOD_TOPICS
)


def _unsupported_payload() -> SaicCommandRejectedError:
    return SaicCommandRejectedError("Unsupported payload")


def _parse_bool(value: str) -> bool:
    try:
        return _BOOLEANS[value]
    except KeyError:
        raise _unsupported_payload() from None


def _parse_seconds(value: str) -> int:
    if not value.isascii() or not value.isdecimal():
        raise _unsupported_payload()
    seconds = int(value)
    if seconds <= 0:
        raise _unsupported_payload()
    return seconds


def parse_command(topic: str, payload: bytes, *, retained: bool) -> CommandAction:
    """Translate an inbound message into the action it requests.

    Raises
    ------
    SaicCommandRejectedError
        The message is retained, the topic is unknown or the payload is not
        one of the values the topic accepts.
    """
    if retained:
        raise SaicCommandRejectedError("Message may not be retained")
    if topic not in COMMAND_TOPICS:
        raise SaicCommandRejectedError("Unsupported topic")

    try:
        value = payload.decode("utf-8").lower()
    except UnicodeDecodeError:
        raise _unsupported_payload() from None

    if topic == topics.DOORS_LOCKED:
        if _parse_bool(value):
            return RemoteCommandAction(RemoteCommandRequest.lock())
        return RemoteCommandAction(RemoteCommandRequest.unlock())

    if topic == topics.CLIMATE_REMOTE_CLIMATE_STATE:
        try:
            command = ClimateCommand(value)
        except ValueError:
            raise _unsupported_payload() from None
        return RemoteCommandAction(RemoteCommandRequest.climate(command))

    if topic == topics.DRIVETRAIN_HV_BATTERY_ACTIVE:
        return HvBatteryAction(_parse_bool(value))

    if topic == topics.REFRESH_MODE:
        try:
            return RefreshModeAction(RefreshMode(value))
        except ValueError:
            raise _unsupported_payload() from None

    return RefreshPeriodAction(topic, _parse_seconds(value))
