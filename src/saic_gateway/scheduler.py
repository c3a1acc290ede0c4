"""Adaptive refresh scheduling.

Polling wakes the vehicle and drains the auxiliary battery, so the cadence
depends on how awake the vehicle is:

* HV battery active, or shut down within ``refresh_period_after_shutdown``:
  poll every ``refresh_period_active`` seconds.
* Otherwise poll every ``refresh_period_inactive`` seconds.

Observed activity after the last refresh always triggers an immediate one.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from saic_gateway.models.refresh import Force, Off, Periodic, RefreshMode, RefreshState, transition
from saic_gateway.state.facts import FactPublisher
from saic_gateway.state.vehicle import VehicleState

_logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Decides on every tick whether a refresh cycle runs."""

    def __init__(self, state: VehicleState, publisher: FactPublisher) -> None:
        self._state = state
        self._publisher = publisher

    @property
    def mode(self) -> RefreshMode:
        return self._state.refresh_state.mode

    @property
    def refresh_state(self) -> RefreshState:
        return self._state.refresh_state

    def set_mode(self, mode: RefreshMode) -> None:
        """Select *mode*; FORCE remembers the mode to resume afterwards."""
        new_state = transition(self._state.refresh_state, mode)
        _logger.info("%s: refresh mode %s -> %s", self._publisher.prefix, self.mode, new_state.mode)
        self._publisher.publish(self._state.set_refresh_state(new_state))

    def _resume(self, state: Off | Periodic) -> None:
        _logger.info("%s: forced refresh fired, resuming %s", self._publisher.prefix, state.mode)
        self._publisher.publish(self._state.set_refresh_state(state))

    def effective_period(self) -> int:
        """Refresh period currently applicable to the vehicle."""
        state = self._state
        if state.hv_battery_active or state.shut_down_within_grace(state.now()):
            return state.refresh_period_active
        return state.refresh_period_inactive

    def should_refresh(self) -> bool:
        state = self._state
        current = state.refresh_state

        if isinstance(current, Off):
            return False

        if isinstance(current, Force):
            self._resume(current.resume_to)
            return True

        if current.force_pending:
            state.refresh_state = Periodic()
            return True

        if state.last_successful_refresh is None:
            state.mark_successful_refresh()
            return True

        if state.last_car_activity is not None and state.last_car_activity > state.last_successful_refresh:
            return True

        interval = timedelta(seconds=self.effective_period())
        return state.last_successful_refresh < state.now() - interval
