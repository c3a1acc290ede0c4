"""Per-vehicle mutable state.

Mutators return the facts describing the change instead of publishing them.
Only the owning vehicle loop mutates an instance.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from saic_gateway._constants import (
    DEFAULT_REFRESH_PERIOD_ACTIVE,
    DEFAULT_REFRESH_PERIOD_AFTER_SHUTDOWN,
    DEFAULT_REFRESH_PERIOD_INACTIVE,
)
from saic_gateway.exceptions import SaicConfigError
from saic_gateway.models.refresh import Periodic, RefreshState
from saic_gateway.models.vehicle import VehicleMessage
from saic_gateway.state import topics
from saic_gateway.state.facts import Fact


def utcnow() -> datetime:
    return datetime.now(UTC)


def _require_positive(name: str, seconds: int) -> int:
    if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0:
        raise SaicConfigError(f"{name} must be a positive number of seconds, got {seconds!r}")
    return seconds


@dataclass
class VehicleState:
    clock: Callable[[], datetime] = utcnow
    last_car_activity: datetime | None = None
    last_successful_refresh: datetime | None = None
    last_car_shutdown: datetime | None = None
    last_vehicle_message: datetime | None = None
    # treat the HV battery as active until data proves otherwise
    hv_battery_active: bool = True
    refresh_period_active: int = DEFAULT_REFRESH_PERIOD_ACTIVE
    refresh_period_inactive: int = DEFAULT_REFRESH_PERIOD_INACTIVE
    refresh_period_after_shutdown: int = DEFAULT_REFRESH_PERIOD_AFTER_SHUTDOWN
    refresh_state: RefreshState = field(default_factory=Periodic)

    def __post_init__(self) -> None:
        if self.last_car_shutdown is None:
            self.last_car_shutdown = self.clock()

    def now(self) -> datetime:
        return self.clock()

    def notify_car_activity(self, timestamp: datetime, *, force: bool = False) -> list[Fact]:
        """Advance the activity timestamp; never moves it back unless forced."""
        if self.last_car_activity is None or force or self.last_car_activity < timestamp:
            self.last_car_activity = timestamp
            return [Fact.of(topics.REFRESH_LAST_ACTIVITY, timestamp)]
        return []

    def set_hv_battery_active(self, active: bool) -> list[Fact]:
        now = self.clock()
        if self.hv_battery_active and not active:
            self.last_car_shutdown = now
        self.hv_battery_active = active

        facts = [Fact.of(topics.DRIVETRAIN_HV_BATTERY_ACTIVE, active)]
        if active:
            facts.extend(self.notify_car_activity(now, force=True))
        return facts

    def accept_message(self, message: VehicleMessage) -> list[Fact]:
        """Register an informational message; only newer messages are published."""
        facts: list[Fact] = []
        if self.last_vehicle_message is None or message.message_time > self.last_vehicle_message:
            facts.append(Fact(topics.INFO_LAST_MESSAGE, message.model_dump_json()))
            self.last_vehicle_message = message.message_time
        # something happened, the vehicle state is worth checking
        facts.extend(self.notify_car_activity(message.message_time))
        return facts

    def mark_successful_refresh(self) -> None:
        self.last_successful_refresh = self.clock()

    def set_refresh_period_active(self, seconds: int) -> list[Fact]:
        self.refresh_period_active = _require_positive("refresh_period_active", seconds)
        return [Fact.of(topics.REFRESH_PERIOD_ACTIVE, seconds)]

    def set_refresh_period_inactive(self, seconds: int) -> list[Fact]:
        self.refresh_period_inactive = _require_positive("refresh_period_inactive", seconds)
        return [Fact.of(topics.REFRESH_PERIOD_INACTIVE, seconds)]

    def set_refresh_period_after_shutdown(self, seconds: int) -> list[Fact]:
        self.refresh_period_after_shutdown = _require_positive("refresh_period_after_shutdown", seconds)
        return [Fact.of(topics.REFRESH_PERIOD_INACTIVE_GRACE, seconds)]

    def set_refresh_state(self, state: RefreshState) -> list[Fact]:
        self.refresh_state = state
        return [Fact.of(topics.REFRESH_MODE, state.mode.value)]

    def shut_down_within_grace(self, now: datetime) -> bool:
        """Whether the vehicle shut down less than the grace period ago."""
        if self.last_car_shutdown is None:
            return False
        return self.last_car_shutdown + timedelta(seconds=self.refresh_period_after_shutdown) > now

    def snapshot_facts(self) -> list[Fact]:
        """Facts describing the operator-visible configuration."""
        return [
            Fact.of(topics.REFRESH_PERIOD_ACTIVE, self.refresh_period_active),
            Fact.of(topics.REFRESH_PERIOD_INACTIVE, self.refresh_period_inactive),
            Fact.of(topics.REFRESH_PERIOD_INACTIVE_GRACE, self.refresh_period_after_shutdown),
            Fact.of(topics.REFRESH_MODE, self.refresh_state.mode.value),
        ]
