"""Protocol envelope models shared by every request kind.

The binary codec turns bytes into :class:`ProtocolMessage` and
:class:`RequestTemplate` into bytes; nothing in this package looks at the
wire layout itself.
"""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from saic_gateway._constants import reserved_bytes
from saic_gateway.session import Credentials


class ProtocolMessage(BaseModel):
    """A decoded backend response.

    Only a handful of header fields are interpreted by the exchange; the
    application payload stays opaque until the state model validates it.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    correlation_id: int = 0
    """Backend event id tying resubmissions to one operation (``0`` = new)."""
    error_present: bool = False
    result_code: int = 0
    """``0`` = success, ``2`` = session expired, anything else = backend error."""
    error_text: bytes = b""
    application_id: str = ""
    protocol_version: int = 0
    application_data: Any | None = None

    @property
    def has_application_data(self) -> bool:
        return self.application_data is not None

    @property
    def error_message(self) -> str:
        """Backend error text decoded for humans."""
        return self.error_text.decode("utf-8", errors="replace").strip()


class RequestTemplate(BaseModel):
    """Immutable request record.

    Every resubmission of a correlated exchange derives a new record through
    :meth:`resubmit` instead of mutating shared session fields.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    uid: str
    token: str
    vin: str
    application_id: str
    protocol_version: int
    message_id: int
    application_data: Any | None = None
    correlation_id: int = 0
    reserved: bytes = Field(default_factory=lambda: reserved_bytes(int(time.time() * 1000)))

    @classmethod
    def for_vehicle(
        cls,
        credentials: Credentials,
        vin: str,
        *,
        application_id: str,
        protocol_version: int,
        message_id: int,
        application_data: Any | None = None,
    ) -> RequestTemplate:
        """Bind a request body to credentials and a vehicle."""
        return cls(
            uid=credentials.uid,
            token=credentials.token,
            vin=vin,
            application_id=application_id,
            protocol_version=protocol_version,
            message_id=message_id,
            application_data=application_data,
        )

    def resubmit(self, correlation_id: int, *, now_ms: int | None = None) -> RequestTemplate:
        """Next request of the same exchange, with fresh transport fields."""
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return self.model_copy(update={"correlation_id": correlation_id, "reserved": reserved_bytes(now_ms)})
