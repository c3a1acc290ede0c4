"""HTTP transport for encoded protocol messages."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import aiohttp

from saic_gateway._constants import USER_AGENT
from saic_gateway.exceptions import SaicTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the correlated exchange.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def send(self, url: str, data: bytes) -> bytes:
        ...


class HttpTransport:
    """POSTs encoded messages and returns the raw response body."""

    def __init__(self, http_session: aiohttp.ClientSession, *, timeout: float = 30.0) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def send(self, url: str, data: bytes) -> bytes:
        headers: dict[str, str] = {
            "accept": "*/*",
            "accept-encoding": "identity",
            "content-type": "text/html; charset=utf-8",
            "user-agent": USER_AGENT,
        }

        _logger.debug("POST %s (%d bytes)", url, len(data))

        try:
            async with self._http.post(url, data=data, headers=headers, timeout=self._timeout) as resp:
                body = await resp.read()
                if resp.status != 200:
                    raise SaicTransportError(
                        f"HTTP {resp.status} from {url}: {body[:200]!r}",
                        status_code=resp.status,
                        url=url,
                    )
        except SaicTransportError:
            raise
        except asyncio.TimeoutError as exc:
            raise SaicTransportError(f"Request to {url} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise SaicTransportError(f"Request to {url} failed: {exc}", url=url) from exc

        if not body.strip():
            raise SaicTransportError(f"Empty response body from {url}", url=url)
        return body
