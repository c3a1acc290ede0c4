"""Normalization of decoded payloads into facts.

The functions here are pure: a payload either normalizes completely or
raises :class:`~saic_gateway.exceptions.SaicPayloadError`, so callers never
publish half a payload.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from saic_gateway._constants import TYRE_PRESSURE_FACTOR
from saic_gateway._redact import redact_for_log
from saic_gateway.exceptions import SaicPayloadError
from saic_gateway.models.charge import ChargeManagementData
from saic_gateway.models.message import ProtocolMessage
from saic_gateway.models.status import VehicleStatusResponse, remote_climate_state
from saic_gateway.state import topics
from saic_gateway.state.facts import Fact

TModel = TypeVar("TModel", bound=BaseModel)


def parse_application_data(model: type[TModel], message: ProtocolMessage) -> TModel:
    """Validate the opaque application payload of *message* as *model*."""
    data = message.application_data
    if data is None:
        raise SaicPayloadError(f"{model.__name__}: message carries no application data")
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise SaicPayloadError(f"{model.__name__}: invalid payload: {exc}") from exc


def message_dump_fact(message: ProtocolMessage) -> Fact:
    """Redacted JSON dump of a decoded message on its ``_internal`` topic."""
    dumped = {
        "applicationId": message.application_id,
        "protocolVersion": message.protocol_version,
        "correlationId": message.correlation_id,
        "resultCode": message.result_code,
        "applicationData": redact_for_log(message.application_data),
    }
    return Fact(
        topics.internal_json_topic(message.application_id, message.protocol_version),
        json.dumps(dumped, separators=(",", ":"), default=str),
    )


def vehicle_status_facts(status: VehicleStatusResponse, now: datetime) -> list[Fact]:
    """Facts for one decoded vehicle status payload (HV battery excluded)."""
    basic = status.basic_vehicle_status
    way_point = status.gps_position.way_point

    facts = [
        Fact.of(topics.DRIVETRAIN_RUNNING, basic.engine_running),
        Fact.of(topics.DRIVETRAIN_CHARGING, basic.is_charging),
    ]
    if basic.interior_temperature is not None:
        facts.append(Fact.of(topics.CLIMATE_INTERIOR_TEMPERATURE, basic.interior_temperature))
    if basic.exterior_temperature is not None:
        facts.append(Fact.of(topics.CLIMATE_EXTERIOR_TEMPERATURE, basic.exterior_temperature))
    facts.append(Fact.of(topics.DRIVETRAIN_AUXILIARY_BATTERY_VOLTAGE, basic.battery_voltage / 10.0))

    facts.append(
        Fact(topics.LOCATION_POSITION, way_point.position.model_dump_json(by_alias=True)),
    )
    facts.append(Fact.of(topics.LOCATION_SPEED, way_point.speed / 10.0))
    facts.append(Fact.of(topics.LOCATION_HEADING, way_point.heading / 10.0))

    # TODO: publish only the doors the vehicle configuration declares
    for topic, value in (
        (topics.DOORS_LOCKED, basic.lock_status),
        (topics.DOORS_DRIVER, basic.driver_door),
        (topics.DOORS_PASSENGER, basic.passenger_door),
        (topics.DOORS_REAR_LEFT, basic.rear_left_door),
        (topics.DOORS_REAR_RIGHT, basic.rear_right_door),
        (topics.DOORS_BOOT, basic.boot_status),
        (topics.DOORS_BONNET, basic.bonnet_status),
    ):
        if value is not None:
            facts.append(Fact.of(topic, value))

    for topic, pressure in (
        (topics.TYRES_FRONT_LEFT_PRESSURE, basic.front_left_tyre_pressure),
        (topics.TYRES_FRONT_RIGHT_PRESSURE, basic.front_right_tyre_pressure),
        (topics.TYRES_REAR_LEFT_PRESSURE, basic.rear_left_tyre_pressure),
        (topics.TYRES_REAR_RIGHT_PRESSURE, basic.rear_right_tyre_pressure),
    ):
        if pressure is not None:
            facts.append(Fact.of(topic, round(pressure * TYRE_PRESSURE_FACTOR, 2)))

    facts.append(Fact.of(topics.CLIMATE_REMOTE_CLIMATE_STATE, remote_climate_state(basic.remote_climate_status)))
    if basic.rmt_htd_rr_wnd_st is not None:
        facts.append(Fact.of(topics.CLIMATE_BACK_WINDOW_HEAT, basic.rmt_htd_rr_wnd_st))

    # mileage reads 0 when the vehicle has no reading; range is 0 as well then
    if basic.mileage is not None:
        facts.append(Fact.of(topics.DRIVETRAIN_MILEAGE, basic.mileage / 10.0))
        facts.append(Fact.of(topics.DRIVETRAIN_RANGE, basic.fuel_range_elec / 10.0))

    facts.append(Fact.of(topics.REFRESH_LAST_VEHICLE_STATE, now))
    return facts


def charge_status_facts(charge: ChargeManagementData, now: datetime) -> list[Fact]:
    """Facts for one decoded charge management payload."""
    return [
        Fact.of(topics.DRIVETRAIN_CURRENT, charge.current),
        Fact.of(topics.DRIVETRAIN_VOLTAGE, charge.voltage),
        Fact.of(topics.DRIVETRAIN_REMAINING_CHARGE_TIME, charge.remaining_charge_time),
        Fact.of(topics.DRIVETRAIN_POWER, charge.power),
        Fact.of(topics.DRIVETRAIN_CHARGER_CONNECTED, charge.charge_status.charging_gun_state),
        Fact.of(topics.DRIVETRAIN_CHARGING_TYPE, charge.charge_status.charging_type),
        Fact.of(topics.DRIVETRAIN_SOC, charge.soc),
        Fact.of(topics.REFRESH_LAST_CHARGE_STATE, now),
    ]
