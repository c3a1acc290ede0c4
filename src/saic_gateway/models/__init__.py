"""Data models for decoded protocol messages and gateway state."""

from saic_gateway.models._base import EpochTimestamp, SaicBaseModel, parse_epoch_timestamp
from saic_gateway.models.charge import ChargeManagementData, ChargeStatus
from saic_gateway.models.command import ClimateCommand, RemoteCommandRequest, RvcParam, RvcRequestType
from saic_gateway.models.message import ProtocolMessage, RequestTemplate
from saic_gateway.models.refresh import Force, Off, Periodic, RefreshMode, RefreshState
from saic_gateway.models.status import (
    BasicVehicleStatus,
    GpsPosition,
    Position,
    RemoteClimateStatus,
    VehicleStatusResponse,
    WayPoint,
    remote_climate_state,
)
from saic_gateway.models.vehicle import VehicleMessage, VinInfo

__all__ = [
    "BasicVehicleStatus",
    "ChargeManagementData",
    "ChargeStatus",
    "ClimateCommand",
    "EpochTimestamp",
    "Force",
    "GpsPosition",
    "Off",
    "Periodic",
    "Position",
    "ProtocolMessage",
    "RefreshMode",
    "RefreshState",
    "RemoteClimateStatus",
    "RemoteCommandRequest",
    "RequestTemplate",
    "RvcParam",
    "RvcRequestType",
    "SaicBaseModel",
    "VehicleMessage",
    "VehicleStatusResponse",
    "VinInfo",
    "WayPoint",
    "parse_epoch_timestamp",
    "remote_climate_state",
]
