"""Topics published below ``<prefix>/vehicles/<vin>/``."""

from __future__ import annotations

INTERNAL = "_internal"
INTERNAL_CONFIGURATION_RAW = "_internal/configuration/raw"
INTERNAL_ABRP = "_internal/abrp"

CLIMATE_INTERIOR_TEMPERATURE = "climate/interiorTemperature"
CLIMATE_EXTERIOR_TEMPERATURE = "climate/exteriorTemperature"
CLIMATE_REMOTE_CLIMATE_STATE = "climate/remoteClimateState"
CLIMATE_BACK_WINDOW_HEAT = "climate/rearWindowDefrosterHeating"

DOORS_LOCKED = "doors/locked"
DOORS_DRIVER = "doors/driver"
DOORS_PASSENGER = "doors/passenger"
DOORS_REAR_LEFT = "doors/rearLeft"
DOORS_REAR_RIGHT = "doors/rearRight"
DOORS_BOOT = "doors/boot"
DOORS_BONNET = "doors/bonnet"

DRIVETRAIN_RUNNING = "drivetrain/running"
DRIVETRAIN_CHARGING = "drivetrain/charging"
DRIVETRAIN_AUXILIARY_BATTERY_VOLTAGE = "drivetrain/auxiliaryBatteryVoltage"
DRIVETRAIN_HV_BATTERY_ACTIVE = "drivetrain/hvBatteryActive"
DRIVETRAIN_MILEAGE = "drivetrain/mileage"
DRIVETRAIN_RANGE = "drivetrain/range"
DRIVETRAIN_CURRENT = "drivetrain/current"
DRIVETRAIN_VOLTAGE = "drivetrain/voltage"
DRIVETRAIN_POWER = "drivetrain/power"
DRIVETRAIN_REMAINING_CHARGE_TIME = "drivetrain/remainingChargingTime"
DRIVETRAIN_CHARGER_CONNECTED = "drivetrain/chargerConnected"
DRIVETRAIN_CHARGING_TYPE = "drivetrain/chargingType"
DRIVETRAIN_SOC = "drivetrain/soc"

INFO_CONFIGURATION = "info/configuration"
INFO_LAST_MESSAGE = "info/lastMessage"

LOCATION_POSITION = "location/position"
LOCATION_SPEED = "location/speed"
LOCATION_HEADING = "location/heading"

REFRESH_LAST_ACTIVITY = "refresh/lastActivity"
REFRESH_LAST_VEHICLE_STATE = "refresh/lastVehicleState"
REFRESH_LAST_CHARGE_STATE = "refresh/lastChargeState"
REFRESH_MODE = "refresh/mode"
REFRESH_PERIOD_ACTIVE = "refresh/period/active"
REFRESH_PERIOD_INACTIVE = "refresh/period/inActive"
REFRESH_PERIOD_INACTIVE_GRACE = "refresh/period/inActiveGrace"

TYRES_FRONT_LEFT_PRESSURE = "tyres/frontLeftPressure"
TYRES_FRONT_RIGHT_PRESSURE = "tyres/frontRightPressure"
TYRES_REAR_LEFT_PRESSURE = "tyres/rearLeftPressure"
TYRES_REAR_RIGHT_PRESSURE = "tyres/rearRightPressure"

RESULT_SUFFIX = "result"
SET_SUFFIX = "set"


def internal_json_topic(application_id: str, protocol_version: int) -> str:
    """Topic carrying the JSON dump of a decoded message."""
    return f"{INTERNAL}/{application_id}_{protocol_version}/json"


def result_topic(command_topic: str) -> str:
    return f"{command_topic}/{RESULT_SUFFIX}"
