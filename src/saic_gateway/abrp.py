"""Route planner push interface.

The HTTP client of the route planner lives outside this package; a vehicle
session only needs something that accepts a fresh status and charge payload.
"""

from __future__ import annotations

from typing import Protocol

from saic_gateway.models.charge import ChargeManagementData
from saic_gateway.models.status import VehicleStatusResponse


class RoutePlanner(Protocol):
    async def push(
        self,
        api_key: str,
        user_token: str,
        status: VehicleStatusResponse,
        charge: ChargeManagementData,
    ) -> str:
        """Push telemetry and return the planner's reply for publication."""
        ...
