"""Vehicle registration and informational message models."""

from __future__ import annotations

import logging

from pydantic import Field

from saic_gateway.models._base import EpochTimestamp, SaicBaseModel

_logger = logging.getLogger(__name__)


class VinInfo(SaicBaseModel):
    """A vehicle registered on the account.

    ``model_configuration_json_str`` is a flat list of
    ``code:<code>,value:<value>`` entries separated by ``;``.
    """

    vin: str = Field(min_length=1)
    brand_name: str | None = None
    model_name: str | None = None
    series: str | None = None
    model_configuration_json_str: str = ""

    def configuration(self) -> dict[str, str]:
        """Parse the model configuration into ``{code: value}``."""
        result: dict[str, str] = {}
        for entry in self.model_configuration_json_str.split(";"):
            if not entry.strip():
                continue
            fields: dict[str, str] = {}
            for item in entry.split(","):
                key, sep, value = item.partition(":")
                if sep:
                    fields[key.strip()] = value.strip()
            code = fields.get("code")
            value = fields.get("value")
            if not code or value is None:
                _logger.debug("Skipping malformed configuration entry %r", entry)
                continue
            result[code] = value
        return result


class VehicleMessage(SaicBaseModel):
    """Informational message sent by the backend (alarms, command notices, ...)."""

    message_id: int | str
    message_type: str | None = None
    title: str | None = None
    content: str | None = None
    message_time: EpochTimestamp
    sender: str | None = None
    vin: str | None = None
    read_status: int | None = None
