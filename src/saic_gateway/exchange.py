"""Correlated long-poll exchange.

The backend processes requests asynchronously. The first response to a
request usually carries neither a payload nor an error, only a correlation
id (``eventID``). The client resubmits the request with that id until either
the application payload materializes or the backend reports an error.

Endpoints:
  - /TAP.Web/ota.mpv21 (vehicle status, remote commands)
  - /TAP.Web/ota.mpv30 (charge status)
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from saic_gateway._codec import MessageCodec, PayloadKind
from saic_gateway._constants import OTA_V21_PATH, OTA_V30_PATH, SESSION_EXPIRED_RESULT_CODE
from saic_gateway._redact import redact_for_log
from saic_gateway._transport import Transport
from saic_gateway.exceptions import (
    SaicCommandTimeoutError,
    SaicError,
    SaicExchangeTimeoutError,
    SaicNotReadyError,
    SaicPayloadError,
    SaicSessionExpiredError,
)
from saic_gateway.models.message import ProtocolMessage, RequestTemplate

_logger = logging.getLogger(__name__)


class ExchangeKind(enum.StrEnum):
    STATUS = "status"
    CHARGE = "charge"
    COMMAND = "command"


@dataclass(frozen=True)
class ExchangeEndpoint:
    kind: ExchangeKind
    path: str
    request_kind: PayloadKind
    response_kind: PayloadKind


VEHICLE_STATUS_ENDPOINT = ExchangeEndpoint(ExchangeKind.STATUS, OTA_V21_PATH, PayloadKind.STATUS, PayloadKind.STATUS)
CHARGE_STATUS_ENDPOINT = ExchangeEndpoint(ExchangeKind.CHARGE, OTA_V30_PATH, PayloadKind.CHARGE, PayloadKind.CHARGE)
REMOTE_COMMAND_ENDPOINT = ExchangeEndpoint(
    ExchangeKind.COMMAND, OTA_V21_PATH, PayloadKind.COMMAND, PayloadKind.COMMAND_STATUS
)


def next_request(kind: ExchangeKind, request: RequestTemplate, response: ProtocolMessage) -> RequestTemplate:
    """Request to resubmit after a "still processing" response.

    Status and charge requests always adopt the returned correlation id.
    Commands only do so while the backend reports success so far; any other
    result means the backend dropped the operation and a fresh one starts.
    """
    if kind is ExchangeKind.COMMAND and response.result_code != 0:
        return request.resubmit(0)
    return request.resubmit(response.correlation_id)


def _raise_for_error(endpoint: ExchangeEndpoint, response: ProtocolMessage) -> None:
    text = response.error_message
    if response.result_code == SESSION_EXPIRED_RESULT_CODE:
        raise SaicSessionExpiredError(
            f"{endpoint.kind} request rejected, session expired: {text}",
            result_code=response.result_code,
            endpoint=endpoint.path,
        )
    if endpoint.kind is ExchangeKind.COMMAND:
        raise SaicCommandTimeoutError(
            text or f"command aborted with result={response.result_code}",
            result_code=response.result_code,
            endpoint=endpoint.path,
        )
    raise SaicNotReadyError(
        f"{endpoint.kind} request not ready: result={response.result_code} message={text}",
        result_code=response.result_code,
        endpoint=endpoint.path,
    )


class CorrelatedExchange:
    """Runs one logical request against the backend until it resolves.

    Parameters
    ----------
    codec : MessageCodec
        Encodes request templates and decodes responses.
    transport : Transport
        Sends encoded bytes and returns the raw response.
    base_url : str
        Backend base URL; endpoint paths are appended.
    max_attempts : int
        Maximum number of requests per exchange (first request included).
    deadline : float
        Seconds after which resubmitting stops.
    poll_interval : float
        Seconds to wait between resubmissions.
    clock : callable
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        *,
        codec: MessageCodec,
        transport: Transport,
        base_url: str,
        max_attempts: int = 30,
        deadline: float = 120.0,
        poll_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._codec = codec
        self._transport = transport
        self._base_url = base_url.rstrip("/")
        self._max_attempts = max_attempts
        self._deadline = deadline
        self._poll_interval = poll_interval
        self._clock = clock

    async def request_vehicle_status(self, template: RequestTemplate) -> ProtocolMessage:
        return await self._exchange(VEHICLE_STATUS_ENDPOINT, template)

    async def request_charge_status(self, template: RequestTemplate) -> ProtocolMessage:
        return await self._exchange(CHARGE_STATUS_ENDPOINT, template)

    async def send_command(self, template: RequestTemplate) -> ProtocolMessage:
        return await self._exchange(REMOTE_COMMAND_ENDPOINT, template)

    async def _send(self, endpoint: ExchangeEndpoint, request: RequestTemplate) -> ProtocolMessage:
        try:
            encoded = self._codec.encode(endpoint.request_kind, request)
        except SaicError:
            raise
        except Exception as exc:
            raise SaicPayloadError(f"Cannot encode {endpoint.kind} request: {exc}") from exc

        raw = await self._transport.send(f"{self._base_url}{endpoint.path}", encoded)

        try:
            return self._codec.decode(endpoint.response_kind, raw)
        except SaicError:
            raise
        except Exception as exc:
            raise SaicPayloadError(f"Cannot decode {endpoint.kind} response: {exc}") from exc

    async def _exchange(self, endpoint: ExchangeEndpoint, template: RequestTemplate) -> ProtocolMessage:
        """Send *template* and resubmit until a payload or an error arrives.

        Returns
        -------
        ProtocolMessage
            The terminal response carrying the application payload.

        Raises
        ------
        SaicSessionExpiredError
            The backend rejected the credentials.
        SaicNotReadyError
            A status/charge request ended with a backend error.
        SaicCommandTimeoutError
            A command ended with a backend error.
        SaicExchangeTimeoutError
            The attempt cap or the deadline was reached first.
        SaicTransportError
            The HTTP request failed.
        SaicPayloadError
            The codec could not encode the request or decode the response.
        """
        started = self._clock()
        request = template
        response = await self._send(endpoint, request)
        attempts = 1

        while not response.has_application_data:
            _logger.debug(
                "%s attempt=%d correlation=%s result=%s error=%s",
                endpoint.kind,
                attempts,
                response.correlation_id,
                response.result_code,
                response.error_present,
            )
            if response.error_present:
                _raise_for_error(endpoint, response)

            elapsed = self._clock() - started
            if attempts >= self._max_attempts or elapsed >= self._deadline:
                raise SaicExchangeTimeoutError(
                    f"{endpoint.kind} request still pending after {attempts} attempts ({elapsed:.1f}s)",
                    attempts=attempts,
                    endpoint=endpoint.path,
                )

            request = next_request(endpoint.kind, request, response)
            if self._poll_interval > 0:
                await asyncio.sleep(self._poll_interval)
            response = await self._send(endpoint, request)
            attempts += 1

        _logger.debug(
            "%s resolved after %d attempts: %s",
            endpoint.kind,
            attempts,
            redact_for_log(response.application_data),
        )
        return response
