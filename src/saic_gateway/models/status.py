"""Vehicle status payload (application ``511``).

Raw units as delivered by the backend:

* temperatures in °C, ``-128`` when unknown
* battery voltage, speed, heading, mileage and range in tenths
* tyre pressures in 4/100 bar
"""

from __future__ import annotations

import enum

from pydantic import AliasChoices, Field

from saic_gateway.models._base import NonZero, SaicBaseModel, Temperature

ENGINE_RUNNING = 1


class RemoteClimateStatus(enum.IntEnum):
    """Known ``remoteClimateStatus`` codes."""

    OFF = 0
    ON = 2
    FRONT = 5


def remote_climate_state(code: int) -> str:
    """Map a raw remote climate code to its published state."""
    try:
        return RemoteClimateStatus(code).name.lower()
    except ValueError:
        return f"unknown ({code})"


class BasicVehicleStatus(SaicBaseModel):
    """Body, drivetrain and climate status."""

    engine_status: int
    extended_data2: int | None = None
    """Charging indicator; only meaningful when present."""
    remote_climate_status: int = 0
    interior_temperature: Temperature = None
    exterior_temperature: Temperature = None
    battery_voltage: int
    lock_status: bool | None = None
    driver_door: bool | None = None
    passenger_door: bool | None = None
    rear_left_door: bool | None = None
    rear_right_door: bool | None = None
    boot_status: bool | None = None
    bonnet_status: bool | None = None
    front_left_tyre_pressure: int | None = None
    front_right_tyre_pressure: int | None = Field(
        default=None,
        validation_alias=AliasChoices("frontRrightTyrePressure", "frontRightTyrePressure", "front_right_tyre_pressure"),
    )
    rear_left_tyre_pressure: int | None = None
    rear_right_tyre_pressure: int | None = None
    rmt_htd_rr_wnd_st: int | None = None
    """Rear window heating state."""
    mileage: NonZero = None
    fuel_range_elec: int = 0

    @property
    def engine_running(self) -> bool:
        return self.engine_status == ENGINE_RUNNING

    @property
    def is_charging(self) -> bool:
        return self.extended_data2 is not None and self.extended_data2 >= 1


class Position(SaicBaseModel):
    latitude: int = 0
    longitude: int = 0
    altitude: int = 0


class WayPoint(SaicBaseModel):
    position: Position = Field(default_factory=Position)
    heading: int = 0
    speed: int = 0


class GpsPosition(SaicBaseModel):
    way_point: WayPoint = Field(default_factory=WayPoint)


class VehicleStatusResponse(SaicBaseModel):
    """Decoded application data of a vehicle status response."""

    basic_vehicle_status: BasicVehicleStatus
    gps_position: GpsPosition = Field(default_factory=GpsPosition)
