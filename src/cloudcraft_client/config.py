"""Configuration helpers for the Cloudcraft client."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from .exceptions import UrlParseError

LIBRARY_VERSION = "1.0.0"
DEFAULT_BASE_URL = "https://api.cloudcraft.co/"
DEFAULT_USER_AGENT = f"cloudcraft-go/{LIBRARY_VERSION}"
MEDIA_TYPE = "application/json"

HEADER_RATE_LIMIT = "RateLimit-Limit"
HEADER_RATE_REMAINING = "RateLimit-Remaining"
HEADER_RATE_RESET = "RateLimit-Reset"


@dataclass(frozen=True, slots=True)
class PollingPolicy:
    """Bounds for re-sending a request while the API answers 202 Accepted.

    ``max_attempts`` counts every attempt, the first one included. ``max_wait``
    caps the total time spent polling in seconds; ``None`` disables that cap.
    """

    max_attempts: int = 30
    interval: float = 1.0
    max_wait: float | None = 120.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval < 0:
            raise ValueError("interval cannot be negative")


@dataclass(slots=True)
class ClientConfig:
    """Typed configuration for `CloudcraftClient`."""

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    headers: dict[str, str] = field(default_factory=dict)
    timeout: float = 30.0
    verify_ssl: bool | str = True
    polling: PollingPolicy = field(default_factory=PollingPolicy)

    def resolved_headers(self) -> dict[str, str]:
        return dict(self.headers)


ClientOption = Callable[[ClientConfig], None]


def set_base_url(base_url: str) -> ClientOption:
    """Use ``base_url`` instead of the public Cloudcraft endpoint."""

    def _apply(config: ClientConfig) -> None:
        try:
            parsed = urlsplit(base_url)
        except ValueError as exc:
            raise UrlParseError(f"Invalid base URL {base_url!r}: {exc}") from exc
        if not parsed.scheme or not parsed.netloc:
            raise UrlParseError(f"Base URL must be absolute, got {base_url!r}")
        config.base_url = base_url if base_url.endswith("/") else f"{base_url}/"

    return _apply


def set_user_agent(user_agent: str) -> ClientOption:
    """Prefix the default user agent with ``user_agent``."""

    def _apply(config: ClientConfig) -> None:
        config.user_agent = f"{user_agent} {config.user_agent}"

    return _apply


def set_request_headers(headers: Mapping[str, str]) -> ClientOption:
    """Merge static headers sent with every request."""

    def _apply(config: ClientConfig) -> None:
        config.headers.update(headers)

    return _apply


def set_timeout(timeout: float) -> ClientOption:
    def _apply(config: ClientConfig) -> None:
        config.timeout = timeout

    return _apply


def set_polling_policy(policy: PollingPolicy) -> ClientOption:
    def _apply(config: ClientConfig) -> None:
        config.polling = policy

    return _apply
