"""Publishing view of one vehicle.

Combines :class:`VehicleState` with a :class:`FactPublisher`: each entry
point applies a state change and publishes the resulting facts as one batch.
"""

from __future__ import annotations

import logging
from datetime import datetime

from saic_gateway.models.charge import ChargeManagementData
from saic_gateway.models.message import ProtocolMessage
from saic_gateway.models.status import VehicleStatusResponse
from saic_gateway.models.vehicle import VehicleMessage, VinInfo
from saic_gateway.state import topics
from saic_gateway.state.facts import Fact, FactPublisher
from saic_gateway.state.normalize import (
    charge_status_facts,
    message_dump_fact,
    parse_application_data,
    vehicle_status_facts,
)
from saic_gateway.state.vehicle import VehicleState

_logger = logging.getLogger(__name__)


class VehicleStateModel:
    """Normalized, published state of a single vehicle."""

    def __init__(self, state: VehicleState, publisher: FactPublisher) -> None:
        self._state = state
        self._publisher = publisher
        self._publisher.publish(state.snapshot_facts())

    @property
    def state(self) -> VehicleState:
        return self._state

    @property
    def publisher(self) -> FactPublisher:
        return self._publisher

    def _apply(self, facts: list[Fact]) -> None:
        if facts:
            self._publisher.publish(facts)

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    def handle_vehicle_status(self, message: ProtocolMessage) -> VehicleStatusResponse:
        """Normalize and publish a vehicle status response.

        Raises :class:`~saic_gateway.exceptions.SaicPayloadError` before
        anything is published when the payload does not validate.
        """
        status = parse_application_data(VehicleStatusResponse, message)
        basic = status.basic_vehicle_status
        now = self._state.now()

        facts = [message_dump_fact(message)]
        facts.extend(vehicle_status_facts(status, now))

        hv_active = basic.is_charging or basic.engine_running or basic.remote_climate_status > 0
        facts.extend(self._state.set_hv_battery_active(hv_active))

        self._publisher.publish(facts)
        return status

    def handle_charge_status(self, message: ProtocolMessage) -> ChargeManagementData:
        """Normalize and publish a charge management response."""
        charge = parse_application_data(ChargeManagementData, message)
        facts = [message_dump_fact(message)]
        facts.extend(charge_status_facts(charge, self._state.now()))
        self._publisher.publish(facts)
        return charge

    # ------------------------------------------------------------------
    # Activity
    # ------------------------------------------------------------------

    def notify_car_activity_time(self, timestamp: datetime, *, force: bool = False) -> None:
        self._apply(self._state.notify_car_activity(timestamp, force=force))

    def set_hv_battery_active(self, active: bool) -> None:
        self._apply(self._state.set_hv_battery_active(active))

    def notify_message(self, message: VehicleMessage) -> None:
        self._apply(self._state.accept_message(message))

    def mark_successful_refresh(self) -> None:
        self._state.mark_successful_refresh()

    # ------------------------------------------------------------------
    # Operator controls
    # ------------------------------------------------------------------

    def set_refresh_period_active(self, seconds: int) -> None:
        self._apply(self._state.set_refresh_period_active(seconds))

    def set_refresh_period_inactive(self, seconds: int) -> None:
        self._apply(self._state.set_refresh_period_inactive(seconds))

    def set_refresh_period_after_shutdown(self, seconds: int) -> None:
        self._apply(self._state.set_refresh_period_after_shutdown(seconds))

    def configure(self, vin_info: VinInfo) -> None:
        """Publish the raw model configuration and one fact per entry."""
        facts = [Fact(topics.INTERNAL_CONFIGURATION_RAW, vin_info.model_configuration_json_str)]
        for code, value in vin_info.configuration().items():
            facts.append(Fact(f"{topics.INFO_CONFIGURATION}/{code}", value))
        _logger.debug("Configuring %d entries for %s", len(facts) - 1, self._publisher.prefix)
        self._publisher.publish(facts)

    def publish_command_result(self, command_topic: str, text: str) -> None:
        self._publisher.publish([Fact(topics.result_topic(command_topic), text, retained=False)])

    def publish_route_planner_result(self, text: str) -> None:
        self._publisher.publish([Fact(topics.INTERNAL_ABRP, text)])
