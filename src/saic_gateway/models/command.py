"""Remote vehicle control (RVC) request bodies (application ``510``)."""

from __future__ import annotations

import enum

from pydantic import Field

from saic_gateway.models._base import SaicBaseModel


class RvcRequestType(enum.IntEnum):
    """``rvcReqType`` values understood by the backend."""

    DOOR_LOCK = 0x01
    DOOR_UNLOCK = 0x02
    CLIMATE = 0x06


class ClimateCommand(enum.StrEnum):
    """Remote climate modes accepted on the ``climate/remoteClimateState`` topic."""

    OFF = "off"
    ON = "on"
    FRONT = "front"

    @property
    def parameters(self) -> tuple[int, int]:
        """``(command, temperature)`` pair sent as parameters 19 and 20."""
        return _CLIMATE_PARAMETERS[self]


_CLIMATE_PARAMETERS: dict[ClimateCommand, tuple[int, int]] = {
    ClimateCommand.OFF: (0, 0),
    ClimateCommand.ON: (2, 8),
    ClimateCommand.FRONT: (5, 8),
}

_UNLOCK_PARAMETERS: dict[int, int] = {4: 0x00, 5: 0x00, 6: 0x00, 7: 0x03, 255: 0x00}


class RvcParam(SaicBaseModel):
    param_id: int
    param_value: bytes


class RemoteCommandRequest(SaicBaseModel):
    """Request body of a remote command.

    Parameters are kept sorted by id, which is the order the backend expects.
    """

    rvc_req_type: RvcRequestType
    rvc_params: tuple[RvcParam, ...] = Field(default_factory=tuple)

    @classmethod
    def build(cls, request_type: RvcRequestType, parameters: dict[int, int] | None = None) -> RemoteCommandRequest:
        params = tuple(
            RvcParam(param_id=key, param_value=bytes([value])) for key, value in sorted((parameters or {}).items())
        )
        return cls(rvc_req_type=request_type, rvc_params=params)

    @classmethod
    def lock(cls) -> RemoteCommandRequest:
        return cls.build(RvcRequestType.DOOR_LOCK)

    @classmethod
    def unlock(cls) -> RemoteCommandRequest:
        return cls.build(RvcRequestType.DOOR_UNLOCK, _UNLOCK_PARAMETERS)

    @classmethod
    def climate(cls, command: ClimateCommand) -> RemoteCommandRequest:
        mode, temperature = command.parameters
        return cls.build(RvcRequestType.CLIMATE, {19: mode, 20: temperature, 255: 0})

    @property
    def parameters(self) -> dict[int, bytes]:
        return {param.param_id: param.param_value for param in self.rvc_params}
