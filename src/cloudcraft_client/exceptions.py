"""Custom exception hierarchy for the Cloudcraft client."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from .http import HttpResponse


class CloudcraftError(RuntimeError):
    """Base error for Cloudcraft failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ArgumentError(CloudcraftError, ValueError):
    """Raised when a required argument is empty before any request is sent."""

    def __init__(self, argument: str, reason: str) -> None:
        super().__init__(f"{argument} is invalid because {reason}")
        self.argument = argument
        self.reason = reason


class UrlParseError(CloudcraftError):
    """Raised when a base or relative URL cannot be parsed or resolved."""


class SerializationError(CloudcraftError):
    """Raised when a request body cannot be encoded as JSON."""


class OptionsEncodingError(CloudcraftError):
    """Raised when query options cannot be converted to key/value pairs."""


class TransportError(CloudcraftError):
    """Raised when the network exchange itself fails (DNS, TCP, TLS, timeout)."""


class RequestCancelledError(TransportError):
    """Raised when the call context was cancelled or its deadline passed."""


class DecodeError(CloudcraftError):
    """Raised when a successful response body does not match the expected shape."""


class ApiError(CloudcraftError):
    """Raised when the API answers with a status outside the 2xx range."""

    def __init__(
        self,
        *,
        method: str,
        url: str,
        status_code: int,
        message: str = "",
        code: int = 0,
        response: HttpResponse | None = None,
        details: Any | None = None,
    ) -> None:
        self.method = method
        self.url = url
        self.message = message
        self.code = code
        self.response = response
        super().__init__(
            f"{method} {url}: {status_code} {message}",
            status_code=status_code,
            details=details,
        )


class PollingTimeoutError(CloudcraftError):
    """Raised when the API keeps answering 202 past the polling policy limits."""

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        response: HttpResponse | None = None,
    ) -> None:
        super().__init__(message, status_code=202)
        self.attempts = attempts
        self.response = response
