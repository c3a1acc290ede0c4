"""Charge management payload (application ``516``)."""

from __future__ import annotations

from pydantic import AliasChoices, Field

from saic_gateway._constants import BMS_CURRENT_FACTOR, BMS_CURRENT_OFFSET, BMS_VOLTAGE_FACTOR
from saic_gateway.models._base import SaicBaseModel


class ChargeStatus(SaicBaseModel):
    charging_gun_state: bool = False
    """Whether a charging cable is plugged in."""
    charging_type: int = 0


class ChargeManagementData(SaicBaseModel):
    """Decoded application data of a charge status response."""

    bms_pack_crnt: int
    bms_pack_vol: int
    bms_pack_soc_dsp: int = Field(validation_alias=AliasChoices("bmsPackSOCDsp", "bmsPackSocDsp", "bms_pack_soc_dsp"))
    chrgng_rmnng_time: int = 0
    charge_status: ChargeStatus = Field(default_factory=ChargeStatus)

    @property
    def current(self) -> float:
        """Battery pack current in A (negative while charging)."""
        return self.bms_pack_crnt * BMS_CURRENT_FACTOR + BMS_CURRENT_OFFSET

    @property
    def voltage(self) -> float:
        """Battery pack voltage in V."""
        return self.bms_pack_vol * BMS_VOLTAGE_FACTOR

    @property
    def power(self) -> float:
        """Battery pack power in kW."""
        return self.current * self.voltage / 1000.0

    @property
    def remaining_charge_time(self) -> int:
        """Remaining charge time; only reported while the charging gun is engaged."""
        if self.charge_status.charging_gun_state:
            return self.chrgng_rmnng_time
        return 0

    @property
    def soc(self) -> float:
        """State of charge in percent."""
        return self.bms_pack_soc_dsp / 10.0
