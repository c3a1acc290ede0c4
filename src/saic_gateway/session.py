"""Credentials issued by the external authentication step."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field

#: The backend does not announce a token lifetime; expiry is normally detected
#: through the session-expired result code instead.
DEFAULT_CREDENTIALS_TTL: float = float("inf")


class Credentials(BaseModel):
    """Session identifiers sent with every request.

    Parameters
    ----------
    uid : str
        User identifier returned by the login step.
    token : str
        Session token returned by the login step.
    created_at : float
        Monotonic timestamp (``time.monotonic()``) when the credentials
        were issued.  Defaults to *now* if not provided.
    ttl : float
        Time-to-live in seconds. Infinite unless the issuer knows better.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    uid: str = Field(min_length=1)
    token: str = Field(min_length=1)
    created_at: float = Field(default_factory=time.monotonic)
    ttl: float = DEFAULT_CREDENTIALS_TTL

    @property
    def is_expired(self) -> bool:
        """Whether the credentials have exceeded their TTL."""
        return (time.monotonic() - self.created_at) >= self.ttl

    @property
    def age(self) -> float:
        """Seconds since the credentials were issued."""
        return time.monotonic() - self.created_at
