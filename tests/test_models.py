from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from saic_gateway._constants import reserved_bytes
from saic_gateway.models import (
    BasicVehicleStatus,
    ChargeManagementData,
    Force,
    Off,
    Periodic,
    ProtocolMessage,
    RefreshMode,
    RequestTemplate,
    VehicleMessage,
    VinInfo,
)
from saic_gateway.models.refresh import transition
from saic_gateway.session import Credentials


def test_reserved_bytes_is_sixteen_ascii_digits() -> None:
    value = reserved_bytes(1_700_000_000_000)

    assert value == b"1111112811111111"
    assert len(value) == 16


def test_request_template_binds_credentials_and_resubmits_immutably() -> None:
    credentials = Credentials(uid="uid-1", token="token-1")
    template = RequestTemplate.for_vehicle(
        credentials,
        "VIN1",
        application_id="511",
        protocol_version=25857,
        message_id=1,
        application_data={"vehStatusReqType": 2},
    )

    following = template.resubmit(17, now_ms=1_700_000_000_000)

    assert template.correlation_id == 0
    assert following.correlation_id == 17
    assert following.reserved == reserved_bytes(1_700_000_000_000)
    assert (following.uid, following.token, following.vin) == ("uid-1", "token-1", "VIN1")
    with pytest.raises(ValidationError):
        template.correlation_id = 5  # type: ignore[misc]


def test_protocol_message_error_text() -> None:
    message = ProtocolMessage.model_validate({"errorPresent": True, "errorText": b"Vehicle offline\n"})

    assert message.error_message == "Vehicle offline"
    assert message.has_application_data is False


def test_credentials_validation() -> None:
    with pytest.raises(ValidationError):
        Credentials(uid="", token="token")
    assert Credentials(uid="u", token="t").is_expired is False


def test_status_sentinels_become_none() -> None:
    status = BasicVehicleStatus.model_validate(
        {"engineStatus": 0, "batteryVoltage": 120, "interiorTemperature": -128, "exteriorTemperature": 4, "mileage": 0}
    )

    assert status.interior_temperature is None
    assert status.exterior_temperature == 4
    assert status.mileage is None
    assert status.is_charging is False


def test_charge_scaling() -> None:
    charge = ChargeManagementData.model_validate({"bmsPackCrnt": 20400, "bmsPackVol": 1480, "bmsPackSOCDsp": 500})

    assert charge.current == pytest.approx(20.0)
    assert charge.voltage == pytest.approx(370.0)
    assert charge.power == pytest.approx(7.4)
    assert charge.remaining_charge_time == 0
    assert charge.soc == 50.0


def test_vin_info_configuration_parsing() -> None:
    info = VinInfo.model_validate(
        {"vin": "VIN1", "modelConfigurationJsonStr": "code:J17,value:1;code:BType,value:2; ;value:3"}
    )

    assert info.configuration() == {"J17": "1", "BType": "2"}


def test_vehicle_message_time_accepts_milliseconds() -> None:
    message = VehicleMessage.model_validate({"messageId": "a1", "messageTime": 1_770_928_447_000})

    assert message.message_time == datetime.fromtimestamp(1_770_928_447, tz=UTC)


@pytest.mark.parametrize(
    ("current", "mode", "expected"),
    [
        (Periodic(), RefreshMode.FORCE, Force(resume_to=Periodic())),
        (Periodic(force_pending=True), RefreshMode.FORCE, Force(resume_to=Periodic())),
        (Off(), RefreshMode.FORCE, Force(resume_to=Off())),
        (Force(resume_to=Off()), RefreshMode.FORCE, Force(resume_to=Off())),
        (Force(resume_to=Periodic()), RefreshMode.PERIODIC, Periodic(force_pending=True)),
        (Off(), RefreshMode.PERIODIC, Periodic()),
        (Force(resume_to=Periodic()), RefreshMode.OFF, Off()),
    ],
)
def test_refresh_transitions(current: object, mode: RefreshMode, expected: object) -> None:
    assert transition(current, mode) == expected  # type: ignore[arg-type]
