"""Orchestration of a single vehicle.

A :class:`VehicleSession` owns the vehicle's state, its refresh scheduler
and a lock serializing refresh cycles and remote commands, so a command
never races a refresh over the same credentials and correlation state.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TypeVar

from saic_gateway._constants import (
    CHARGE_STATUS_APPLICATION_ID,
    CHARGE_STATUS_MESSAGE_ID,
    CHARGE_STATUS_PROTOCOL_VERSION,
    REMOTE_COMMAND_APPLICATION_ID,
    REMOTE_COMMAND_MESSAGE_ID,
    REMOTE_COMMAND_PROTOCOL_VERSION,
    VEHICLE_STATUS_APPLICATION_ID,
    VEHICLE_STATUS_MESSAGE_ID,
    VEHICLE_STATUS_PROTOCOL_VERSION,
    VEHICLE_STATUS_REQUEST_TYPE,
)
from saic_gateway.abrp import RoutePlanner
from saic_gateway.commands import (
    CommandAction,
    HvBatteryAction,
    RefreshModeAction,
    RefreshPeriodAction,
    RemoteCommandAction,
    parse_command,
)
from saic_gateway.config import RefreshDefaults
from saic_gateway.exceptions import (
    SaicApiError,
    SaicError,
    SaicExchangeTimeoutError,
    SaicPayloadError,
    SaicPublishError,
    SaicSessionExpiredError,
    SaicTransportError,
)
from saic_gateway.exchange import CorrelatedExchange
from saic_gateway.models.charge import ChargeManagementData
from saic_gateway.models.command import RemoteCommandRequest
from saic_gateway.models.message import ProtocolMessage, RequestTemplate
from saic_gateway.models.status import VehicleStatusResponse
from saic_gateway.models.vehicle import VehicleMessage, VinInfo
from saic_gateway.scheduler import RefreshScheduler
from saic_gateway.session import Credentials
from saic_gateway.state import topics
from saic_gateway.state.facts import FactPublisher
from saic_gateway.state.model import VehicleStateModel
from saic_gateway.state.vehicle import VehicleState, utcnow

_logger = logging.getLogger(__name__)

T = TypeVar("T")

COMMAND_SUCCESS = "Success"
COMMAND_FAILED = "Command failed. {reason}"

#: Refresh failures that only skip the current cycle.
_SKIPPABLE_ERRORS = (
    SaicTransportError,
    SaicApiError,
    SaicExchangeTimeoutError,
    SaicPayloadError,
    SaicPublishError,
)


class VehicleSession:
    """Refresh loop and command handling for one vehicle.

    Parameters
    ----------
    vin_info : VinInfo
        Registration data of the vehicle.
    exchange : CorrelatedExchange
        Shared protocol client.
    credentials : Credentials
        Current session credentials.
    publisher : FactPublisher
        Publisher bound to the vehicle's topic prefix.
    refresh : RefreshDefaults
        Initial refresh periods.
    idle_interval : float
        Seconds between scheduling ticks.
    route_planner : RoutePlanner or None
        Receives fresh status and charge data when configured.
    abrp_api_key, abrp_user_token : str or None
        Route planner credentials; pushing needs both.
    reauthenticate : callable or None
        Coroutine returning fresh credentials after a session-expired
        response. Without it session expiry escalates to the caller.
    clock : callable
        Wall clock returning aware datetimes, injectable for tests.
    """

    def __init__(
        self,
        vin_info: VinInfo,
        *,
        exchange: CorrelatedExchange,
        credentials: Credentials,
        publisher: FactPublisher,
        refresh: RefreshDefaults | None = None,
        idle_interval: float = 1.0,
        route_planner: RoutePlanner | None = None,
        abrp_api_key: str | None = None,
        abrp_user_token: str | None = None,
        reauthenticate: Callable[[], Awaitable[Credentials]] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        refresh = refresh or RefreshDefaults()
        self._vin_info = vin_info
        self._exchange = exchange
        self._credentials = credentials
        self._idle_interval = idle_interval
        self._route_planner = route_planner
        self._abrp_api_key = abrp_api_key
        self._abrp_user_token = abrp_user_token
        self._reauthenticate = reauthenticate
        self._lock = asyncio.Lock()

        self._state = VehicleState(
            clock=clock,
            refresh_period_active=refresh.active,
            refresh_period_inactive=refresh.inactive,
            refresh_period_after_shutdown=refresh.after_shutdown,
        )
        self._model = VehicleStateModel(self._state, publisher)
        self._scheduler = RefreshScheduler(self._state, publisher)

    @property
    def vin(self) -> str:
        return self._vin_info.vin

    @property
    def state(self) -> VehicleState:
        return self._state

    @property
    def model(self) -> VehicleStateModel:
        return self._model

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _status_template(self, credentials: Credentials) -> RequestTemplate:
        return RequestTemplate.for_vehicle(
            credentials,
            self.vin,
            application_id=VEHICLE_STATUS_APPLICATION_ID,
            protocol_version=VEHICLE_STATUS_PROTOCOL_VERSION,
            message_id=VEHICLE_STATUS_MESSAGE_ID,
            application_data={"vehStatusReqType": VEHICLE_STATUS_REQUEST_TYPE},
        )

    def _charge_template(self, credentials: Credentials) -> RequestTemplate:
        return RequestTemplate.for_vehicle(
            credentials,
            self.vin,
            application_id=CHARGE_STATUS_APPLICATION_ID,
            protocol_version=CHARGE_STATUS_PROTOCOL_VERSION,
            message_id=CHARGE_STATUS_MESSAGE_ID,
        )

    def _command_template(self, credentials: Credentials, request: RemoteCommandRequest) -> RequestTemplate:
        return RequestTemplate.for_vehicle(
            credentials,
            self.vin,
            application_id=REMOTE_COMMAND_APPLICATION_ID,
            protocol_version=REMOTE_COMMAND_PROTOCOL_VERSION,
            message_id=REMOTE_COMMAND_MESSAGE_ID,
            application_data=request,
        )

    async def _call_with_reauth(self, fn: Callable[[Credentials], Awaitable[T]]) -> T:
        """Run a backend call, retrying once with fresh credentials on session expiry.

        Credentials past their TTL are renewed before the call is made.
        """
        if self._reauthenticate is not None and self._credentials.is_expired:
            _logger.info("%s: credentials expired after %.0fs, renewing", self.vin, self._credentials.age)
            self._credentials = await self._reauthenticate()
        try:
            return await fn(self._credentials)
        except SaicSessionExpiredError:
            if self._reauthenticate is None:
                raise
            _logger.warning("%s: session expired, re-authenticating", self.vin)
            self._credentials = await self._reauthenticate()
            return await fn(self._credentials)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh_once(self) -> None:
        """Fetch and publish vehicle status, then charge status.

        A payload is published completely or not at all. Errors propagate
        to the caller; the route planner only sees cycles where both
        payloads arrived.
        """
        async with self._lock:
            status_message: ProtocolMessage = await self._call_with_reauth(
                lambda creds: self._exchange.request_vehicle_status(self._status_template(creds))
            )
            status = self._model.handle_vehicle_status(status_message)
            self._model.mark_successful_refresh()

            charge_message: ProtocolMessage = await self._call_with_reauth(
                lambda creds: self._exchange.request_charge_status(self._charge_template(creds))
            )
            charge = self._model.handle_charge_status(charge_message)

        await self._push_route_planner(status, charge)

    async def _push_route_planner(self, status: VehicleStatusResponse, charge: ChargeManagementData) -> None:
        if self._route_planner is None or not self._abrp_api_key or not self._abrp_user_token:
            return
        try:
            reply = await self._route_planner.push(self._abrp_api_key, self._abrp_user_token, status, charge)
        except Exception:
            _logger.warning("%s: route planner push failed", self.vin, exc_info=True)
            return
        self._model.publish_route_planner_result(reply)

    async def run(self) -> None:
        """Refresh loop; runs until cancelled.

        :class:`SaicSessionExpiredError` escalates when it cannot be
        recovered by re-authentication; other refresh failures skip the
        current cycle.
        """
        self._model.configure(self._vin_info)
        # assume the vehicle is awake at startup
        self._model.notify_car_activity_time(self._state.now(), force=True)

        while True:
            if self._scheduler.should_refresh():
                try:
                    await self.refresh_once()
                except SaicSessionExpiredError:
                    raise
                except _SKIPPABLE_ERRORS as exc:
                    _logger.info("%s: refresh skipped: %s", self.vin, exc)
            await asyncio.sleep(self._idle_interval)

    # ------------------------------------------------------------------
    # Commands and messages
    # ------------------------------------------------------------------

    async def handle_command(self, topic: str, payload: bytes, *, retained: bool = False) -> None:
        """Execute one inbound command and publish exactly one acknowledgement."""
        try:
            action = parse_command(topic, payload, retained=retained)
            await self._apply(action)
        except SaicError as exc:
            _logger.warning("%s: command %s failed: %s", self.vin, topic, exc)
            self._model.publish_command_result(topic, COMMAND_FAILED.format(reason=exc))
            return
        self._model.publish_command_result(topic, COMMAND_SUCCESS)

    async def _apply(self, action: CommandAction) -> None:
        if isinstance(action, RemoteCommandAction):
            await self._send_command(action.request)
        elif isinstance(action, HvBatteryAction):
            self._model.set_hv_battery_active(action.active)
        elif isinstance(action, RefreshModeAction):
            self._scheduler.set_mode(action.mode)
        elif isinstance(action, RefreshPeriodAction):
            self._set_refresh_period(action.topic, action.seconds)

    def _set_refresh_period(self, topic: str, seconds: int) -> None:
        if topic == topics.REFRESH_PERIOD_ACTIVE:
            self._model.set_refresh_period_active(seconds)
        elif topic == topics.REFRESH_PERIOD_INACTIVE:
            self._model.set_refresh_period_inactive(seconds)
        else:
            self._model.set_refresh_period_after_shutdown(seconds)

    async def _send_command(self, request: RemoteCommandRequest) -> ProtocolMessage:
        async with self._lock:
            # the vehicle wakes up to execute the command
            self._model.notify_car_activity_time(self._state.now())
            _logger.debug("%s: sending %s", self.vin, request.rvc_req_type.name)
            return await self._call_with_reauth(
                lambda creds: self._exchange.send_command(self._command_template(creds, request))
            )

    def notify_message(self, message: VehicleMessage) -> None:
        self._model.notify_message(message)
