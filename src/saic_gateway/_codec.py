"""Structural interface of the binary message codec.

The codec itself lives outside this package; the gateway only needs to turn
a :class:`RequestTemplate` into bytes and bytes back into a
:class:`ProtocolMessage` for a given payload kind.
"""

from __future__ import annotations

import enum
from typing import Protocol

from saic_gateway.models.message import ProtocolMessage, RequestTemplate


class PayloadKind(enum.StrEnum):
    """Application payload type an encode/decode call is parameterized by."""

    STATUS = "status"
    CHARGE = "charge"
    COMMAND = "command"
    COMMAND_STATUS = "command-status"


class MessageCodec(Protocol):
    def encode(self, kind: PayloadKind, template: RequestTemplate) -> bytes:
        ...

    def decode(self, kind: PayloadKind, data: bytes) -> ProtocolMessage:
        ...
