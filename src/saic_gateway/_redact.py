"""Helpers for safe debug logging and raw message dumps.

Every protocol message carries the session uid and token, and the VIN is
personal data as well. Secrets are replaced entirely; VINs keep their last
four characters so log lines of different vehicles stay distinguishable.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

REDACTED = "<redacted>"

_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "uid",
        "token",
        "password",
        "apikey",
        "usertoken",
        "authorization",
        # time-varying transport header
        "reserved",
    }
)
_VIN_KEYS: frozenset[str] = frozenset({"vin"})
_VIN_VISIBLE_CHARS = 4
_MAX_DEPTH = 20


def _normalize_key(key: object) -> str:
    return str(key).replace("_", "").lower()


def mask_vin(vin: Any) -> str:
    """``LSJA0000000000001`` -> ``***0001``."""
    text = str(vin)
    if len(text) <= _VIN_VISIBLE_CHARS:
        return REDACTED
    return f"***{text[-_VIN_VISIBLE_CHARS:]}"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted, JSON-friendly copy of *value*."""
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = _normalize_key(k)
            if key in _SECRET_KEYS:
                redacted[str(k)] = REDACTED
            elif key in _VIN_KEYS and v is not None:
                redacted[str(k)] = mask_vin(v)
            else:
                redacted[str(k)] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
