"""Shared pieces of the decoded payload models.

The codec hands over payloads with camelCase keys; :class:`SaicBaseModel`
maps them to snake_case fields. Raw values the vehicle uses as "no reading"
markers are turned into ``None`` at validation time through the
:func:`none_if` annotation, so normalization code only ever checks for
``None``.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from saic_gateway._constants import TEMPERATURE_SENTINEL


def is_temperature_sentinel(value: int | float) -> bool:
    return value <= TEMPERATURE_SENTINEL


def is_zero(value: int | float) -> bool:
    return value == 0


def none_if(predicate: Callable[[Any], bool]) -> AfterValidator:
    """Validator replacing values matching *predicate* with ``None``."""

    def _validate(value: Any) -> Any:
        if value is not None and predicate(value):
            return None
        return value

    return AfterValidator(_validate)


Temperature = Annotated[int | None, none_if(is_temperature_sentinel)]
"""Temperature in °C; ``-128`` means the sensor has no reading."""

NonZero = Annotated[int | None, none_if(is_zero)]
"""Counter that reads ``0`` when the vehicle did not report it."""

# epoch values at or above this are milliseconds
_EPOCH_MS_THRESHOLD = 10**12


def parse_epoch_timestamp(value: Any) -> datetime | None:
    """Epoch seconds or milliseconds to an aware UTC datetime."""
    if value is None or isinstance(value, datetime):
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
    seconds = int(value)
    if seconds >= _EPOCH_MS_THRESHOLD:
        seconds //= 1000
    return datetime.fromtimestamp(seconds, tz=UTC)


EpochTimestamp = Annotated[datetime, BeforeValidator(parse_epoch_timestamp)]


class SaicBaseModel(BaseModel):
    """Base for decoded payload models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
