"""Custom exception hierarchy for saic_gateway."""

from __future__ import annotations


class SaicError(Exception):
    """Base exception for all saic_gateway errors."""


class SaicConfigError(SaicError):
    """Invalid or missing configuration."""


class SaicTransportError(SaicError):
    """HTTP-level failure (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class SaicApiError(SaicError):
    """Backend flagged an error in a decoded protocol message."""

    def __init__(
        self,
        message: str,
        *,
        result_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.result_code = result_code
        self.endpoint = endpoint
        super().__init__(message)


class SaicNotReadyError(SaicApiError):
    """A status or charge request ended with a recoverable backend error.

    The refresh cycle is abandoned and retried on the next scheduling tick.
    """


class SaicCommandTimeoutError(SaicApiError):
    """A remote command was aborted by the backend.

    The message carries the error text returned by the backend.
    """


class SaicAuthenticationError(SaicApiError):
    """Authentication failed or credentials are no longer valid."""


class SaicSessionExpiredError(SaicAuthenticationError):
    """Backend answered with the session-expired result code.

    Callers above the exchange either re-authenticate and retry once, or let
    the error escalate.
    """


class SaicExchangeTimeoutError(SaicError):
    """The backend kept answering "not ready" past the attempt cap or deadline."""

    def __init__(self, message: str, *, attempts: int = 0, endpoint: str = "") -> None:
        self.attempts = attempts
        self.endpoint = endpoint
        super().__init__(message)


class SaicPayloadError(SaicError):
    """A decoded application payload did not match the expected shape."""


class SaicCommandRejectedError(SaicError):
    """Inbound command was malformed (retained, unknown topic or payload)."""


class SaicPublishError(SaicError):
    """Publishing to the message bus failed."""
