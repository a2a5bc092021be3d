"""HTTP utilities for Cloudcraft API access."""

from __future__ import annotations

import dataclasses
import json
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin, urlsplit

import requests
from requests import PreparedRequest, Response, Session
from requests.structures import CaseInsensitiveDict
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from .auth.base import AuthStrategy
from .config import (
    HEADER_RATE_LIMIT,
    HEADER_RATE_REMAINING,
    HEADER_RATE_RESET,
    MEDIA_TYPE,
    ClientConfig,
)
from .context import BACKGROUND, RequestContext
from .exceptions import (
    ApiError,
    ArgumentError,
    PollingTimeoutError,
    SerializationError,
    TransportError,
    UrlParseError,
)
from .sinks import ResultSink

logger = logging.getLogger(__name__)

BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
SUPPORTED_METHODS = BODYLESS_METHODS | {"POST", "PUT", "PATCH", "DELETE"}
PROCESSING_STATUS = 202
MAX_BODY_SLURP = 2048

RequestCompletionCallback = Callable[[PreparedRequest, Response], None]


@dataclass(frozen=True, slots=True)
class RateLimit:
    """Rate limit headers reported by the API, when present."""

    limit: int | None
    remaining: int | None
    reset: int | None


@dataclass(slots=True)
class HttpResponse:
    """Typed response wrapper with helper accessors."""

    status_code: int
    headers: Mapping[str, str]
    data: Any = None
    request: PreparedRequest | None = None

    @classmethod
    def from_response(cls, response: Response) -> HttpResponse:
        return cls(
            status_code=response.status_code,
            headers=response.headers,
            request=response.request,
        )

    @property
    def rate_limit(self) -> RateLimit:
        return RateLimit(
            limit=_header_int(self.headers, HEADER_RATE_LIMIT),
            remaining=_header_int(self.headers, HEADER_RATE_REMAINING),
            reset=_header_int(self.headers, HEADER_RATE_RESET),
        )


def _header_int(headers: Mapping[str, str], name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


# Request building ---------------------------------------------------------
def resolve_url(base_url: str, path: str) -> str:
    """Resolve ``path`` (no leading slash) against ``base_url``."""

    base = base_url if base_url.endswith("/") else f"{base_url}/"
    try:
        url = urljoin(base, path)
        parsed = urlsplit(url)
        parsed.port  # raises ValueError on a malformed port
    except ValueError as exc:
        raise UrlParseError(f"Cannot resolve {path!r} against {base_url!r}: {exc}") from exc
    if not parsed.scheme or not parsed.netloc:
        raise UrlParseError(f"Cannot resolve {path!r} against {base_url!r}: not an absolute URL")
    return url


def encode_body(body: Any) -> bytes:
    """JSON encode a request body (model, dataclass, mapping or list)."""

    to_dict = getattr(body, "to_dict", None)
    if callable(to_dict):
        payload = to_dict()
    elif dataclasses.is_dataclass(body) and not isinstance(body, type):
        payload = dataclasses.asdict(body)
    else:
        payload = body
    try:
        return json.dumps(payload, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Cannot encode request body as JSON: {exc}") from exc


def _add_header(headers: CaseInsensitiveDict, key: str, value: str) -> None:
    existing = headers.get(key)
    headers[key] = value if existing is None else f"{existing}, {value}"


def build_request(
    config: ClientConfig,
    method: str,
    path: str,
    body: Any | None = None,
    *,
    auth: AuthStrategy | None = None,
    headers: Mapping[str, str] | None = None,
) -> PreparedRequest:
    """Create an API request for ``path`` relative to the configured base URL.

    GET, HEAD and OPTIONS never carry a body. For other methods a non-None
    ``body`` is JSON encoded. Static headers are added on top of ``headers``
    without replacing them, then Accept and User-Agent are forced.
    """

    verb = method.upper()
    if verb not in SUPPORTED_METHODS:
        raise ArgumentError("method", f"{method!r} is not a supported HTTP method")
    url = resolve_url(config.base_url, path)

    merged: CaseInsensitiveDict = CaseInsensitiveDict(headers or {})
    data: bytes | None = None
    if verb not in BODYLESS_METHODS:
        if body is not None:
            data = encode_body(body)
        merged["Content-Type"] = MEDIA_TYPE

    static_headers = config.resolved_headers()
    if auth is not None:
        auth.apply(static_headers)
    for key, value in static_headers.items():
        _add_header(merged, key, value)

    merged["Accept"] = MEDIA_TYPE
    merged["User-Agent"] = config.user_agent

    return requests.Request(verb, url, headers=merged, data=data).prepare()


# Transport ----------------------------------------------------------------
def send(
    session: Session,
    request: PreparedRequest,
    *,
    timeout: float | None = None,
    verify: bool | str = True,
) -> Response:
    """Perform one network exchange; status codes are not interpreted here."""

    try:
        settings = session.merge_environment_settings(request.url, {}, True, verify, None)
        return session.send(request, timeout=timeout, allow_redirects=True, **settings)
    except requests.RequestException as exc:
        reason = str(exc).strip() or exc.__class__.__name__
        raise TransportError(
            f"Failed to communicate with Cloudcraft API: {reason}", details=reason
        ) from exc


# Response handling --------------------------------------------------------
def check_response(response: Response, wrapper: HttpResponse | None = None) -> None:
    """Raise `ApiError` if the response signals a failure.

    Error bodies are expected to be empty or ``{"error": str, "code": int}``.
    Any other body becomes the error message verbatim.
    """

    status = response.status_code
    if 200 <= status <= 299:
        return

    request = response.request
    method = (request.method if request is not None else None) or "GET"
    url = (request.url if request is not None else None) or response.url

    try:
        raw = response.content or b""
    except requests.RequestException as exc:
        logger.debug("Unable to read error body for %s %s: %s", method, url, exc)
        raw = b""

    text = raw.decode("utf-8", errors="replace") if raw else None
    message, code = "", 0
    if raw:
        parsed = _parse_error_body(raw)
        if parsed is None:
            message = text
        else:
            message, code = parsed

    raise ApiError(
        method=method,
        url=url,
        status_code=status,
        message=message,
        code=code,
        response=wrapper or HttpResponse.from_response(response),
        details=text,
    )


def _parse_error_body(raw: bytes) -> tuple[str, int] | None:
    try:
        payload = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    message = payload.get("error")
    code = payload.get("code")
    if message is not None and not isinstance(message, str):
        return None
    if code is not None and (isinstance(code, bool) or not isinstance(code, int)):
        return None
    return message or "", code or 0


def drain_and_close(response: Response) -> None:
    """Read a little of what is left of the body, then release the connection.

    Small leftovers are slurped so the pooled connection can be reused.
    Failures here never affect the outcome of the call.
    """

    try:
        if response.raw is not None and _should_drain(response):
            response.raw.read(MAX_BODY_SLURP, decode_content=False)
    except (OSError, ValueError, requests.RequestException, Urllib3HTTPError) as exc:
        logger.debug("Ignoring error while draining response body: %s", exc)
    try:
        response.close()
    except (OSError, requests.RequestException, Urllib3HTTPError) as exc:
        logger.debug("Ignoring error while closing response: %s", exc)


def _should_drain(response: Response) -> bool:
    length = response.headers.get("Content-Length")
    if length is None:
        return True
    try:
        return int(length) <= MAX_BODY_SLURP
    except ValueError:
        return True


def handle_response(response: Response, sink: ResultSink | None = None) -> HttpResponse:
    """Classify a final response and decode its body into ``sink``."""

    wrapper = HttpResponse.from_response(response)
    check_response(response, wrapper)
    if sink is None:
        return wrapper
    try:
        wrapper.data = sink.consume(response)
    except requests.RequestException as exc:
        reason = str(exc).strip() or exc.__class__.__name__
        raise TransportError(
            f"Failed to read Cloudcraft API response: {reason}", details=reason
        ) from exc
    return wrapper


def execute(
    session: Session,
    request: PreparedRequest,
    *,
    config: ClientConfig,
    sink: ResultSink | None = None,
    context: RequestContext = BACKGROUND,
    on_completed: RequestCompletionCallback | None = None,
) -> HttpResponse:
    """Send ``request``, polling while the API answers 202, and decode the result."""

    policy = config.polling
    started = time.monotonic()
    attempts = 0
    while True:
        context.check()
        attempts += 1
        response = send(
            session,
            request,
            timeout=context.attempt_timeout(config.timeout),
            verify=config.verify_ssl,
        )
        if response.status_code != PROCESSING_STATUS:
            break

        pending = HttpResponse.from_response(response)
        drain_and_close(response)
        elapsed = time.monotonic() - started
        if attempts >= policy.max_attempts or (
            policy.max_wait is not None and elapsed >= policy.max_wait
        ):
            raise PollingTimeoutError(
                f"{request.method} {request.url} still processing after "
                f"{attempts} attempts ({elapsed:.1f}s)",
                attempts=attempts,
                response=pending,
            )
        logger.debug(
            "Cloudcraft is still processing %s %s (attempt %d/%d), polling again in %.1fs",
            request.method,
            request.url,
            attempts,
            policy.max_attempts,
            policy.interval,
        )
        delay = policy.interval
        remaining = context.remaining()
        if remaining is not None:
            delay = max(min(delay, remaining), 0.0)
        if delay:
            time.sleep(delay)

    try:
        if on_completed is not None:
            on_completed(request, response)
        return handle_response(response, sink)
    finally:
        drain_and_close(response)
