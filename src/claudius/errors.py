"""Exception hierarchy for Claudius."""

from __future__ import annotations


class ClaudiusError(Exception):
    """Base exception for all Claudius errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ValidationError(ClaudiusError):
    """A request could not be built from the supplied fields.

    Raised before any network call is attempted.
    """

    def __init__(
        self, message: str, *, hint: str | None = None, field: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.field = field


class ConfigError(ClaudiusError):
    """Configuration validation or credential resolution failed."""


class TransportError(ClaudiusError):
    """The HTTP exchange failed: connection, timeout, or non-2xx status.

    ``retryable`` tells callers whether the same request may succeed later.
    Claudius never retries on its own.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        error_type: str | None = None,
        retryable: bool | None = None,
        retry_after_s: float | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.error_type = error_type
        self.retryable = retryable
        self.retry_after_s = retry_after_s


class RateLimitError(TransportError):
    """Rate limit exceeded (HTTP 429)."""


class DecodeError(ClaudiusError):
    """A server payload could not be decoded into a typed value."""


class StreamFramingError(DecodeError):
    """The byte stream did not follow server-sent event framing."""
