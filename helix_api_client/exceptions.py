"""
Custom exception types for the Helix API client.

These exceptions allow callers to distinguish between failures that
occur while configuring the client, validating endpoint options,
building a request, honouring a cancelled context, authenticating,
and those arising from API responses.

Transport failures raised by :mod:`requests` and JSON decoding errors
are not wrapped; they reach the caller unchanged.
"""

from typing import Any, Optional


class HelixError(Exception):
    """Base exception for all Helix client errors."""


class EmptyCredentialsError(HelixError, ValueError):
    """Raised when a required credential field is empty."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} field is required")


class InvalidOptionsError(HelixError, ValueError):
    """Raised when endpoint options are missing a required parameter."""

    def __init__(self, options: Any, message: str) -> None:
        self.options = options
        self.message = message
        super().__init__(message)


class RequestBuildError(HelixError):
    """Raised when an outbound request cannot be constructed."""


class InvalidMethodError(RequestBuildError, ValueError):
    """Raised when the HTTP method is not a valid token."""


class URLParseError(RequestBuildError, ValueError):
    """Raised when a request path cannot be parsed."""


class RequestBodyError(RequestBuildError, TypeError):
    """Raised when a request body cannot be serialised to JSON."""


class ContextError(HelixError):
    """Base class for errors caused by the execution context."""


class ContextRequiredError(ContextError, ValueError):
    """Raised when a call is made without an execution context."""

    def __init__(self) -> None:
        super().__init__("context must be non-None")


class ContextCancelledError(ContextError):
    """Raised when the execution context was cancelled."""

    def __init__(self) -> None:
        super().__init__("context cancelled")


class DeadlineExceededError(ContextError):
    """Raised when the execution context's deadline has passed."""

    def __init__(self) -> None:
        super().__init__("context deadline exceeded")


class HelixAuthError(HelixError):
    """Raised when authentication or token retrieval fails."""


class HelixAPIError(HelixError):
    """Raised when the Helix API returns a non-success status.

    The raw :class:`requests.Response` is kept on ``response`` for
    inspection and the rate limit headers of the failed call are
    available on ``rate``.
    """

    def __init__(self, response: Any, message: str, rate: Optional[Any] = None) -> None:
        self.response = response
        self.message = message
        self.rate = rate
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def __str__(self) -> str:
        request = self.response.request
        method = request.method if request is not None else None
        url = request.url if request is not None else self.response.url
        return (
            f"Method: {method}\n"
            f"URL: {url}\n"
            f"Status Code: {self.status_code}\n"
            f"Message: {self.message}"
        )


class TimestampDecodeError(HelixError, ValueError):
    """Raised when a JSON value cannot be decoded into a timestamp."""
