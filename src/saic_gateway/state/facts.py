"""Normalized facts and their publication.

State changes produce lists of :class:`Fact`; publishing them is a separate
step so transitions can be tested without a broker.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

_logger = logging.getLogger(__name__)


class MessageSink(Protocol):
    """Publish side of the message bus."""

    def publish(self, topic: str, payload: bytes, *, retained: bool, qos: int) -> None:
        ...


def format_value(value: Any) -> str:
    """Render a fact value the way subscribers expect it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


@dataclass(frozen=True, slots=True)
class Fact:
    topic: str
    """Topic relative to the vehicle prefix."""
    payload: str
    retained: bool = True
    qos: int = 0

    @classmethod
    def of(cls, topic: str, value: Any, *, retained: bool = True) -> Fact:
        return cls(topic=topic, payload=format_value(value), retained=retained)


class FactPublisher:
    """Publishes fact batches below one vehicle prefix."""

    def __init__(self, sink: MessageSink, prefix: str) -> None:
        self._sink = sink
        self._prefix = prefix.rstrip("/")

    @property
    def prefix(self) -> str:
        return self._prefix

    def publish(self, facts: Iterable[Fact]) -> None:
        for fact in facts:
            topic = f"{self._prefix}/{fact.topic}"
            _logger.debug("Publishing %s=%s", topic, fact.payload)
            self._sink.publish(topic, fact.payload.encode("utf-8"), retained=fact.retained, qos=fact.qos)
