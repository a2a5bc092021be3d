"""High-level Cloudcraft REST client."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from .auth.base import AuthStrategy
from .auth.bearer import BearerTokenAuth
from .config import (
    DEFAULT_BASE_URL,
    ClientConfig,
    ClientOption,
    PollingPolicy,
    set_base_url,
    set_request_headers,
    set_user_agent,
)
from .context import BACKGROUND, RequestContext
from .http import HttpResponse, RequestCompletionCallback, build_request, execute
from .resources import AwsAccountsResource, BlueprintsResource, UsersResource
from .sinks import ResultSink, Typed

logger = logging.getLogger(__name__)


class CloudcraftClient:
    """Wrap Cloudcraft REST endpoints with helper methods.

    Configuration is fixed once the client is built: keyword arguments are
    applied first, then ``options`` in order.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        auth_strategy: AuthStrategy | None = None,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = 30.0,
        verify_ssl: bool | str = True,
        polling: PollingPolicy | None = None,
        options: Sequence[ClientOption] = (),
        session: requests.Session | None = None,
    ) -> None:
        if token and auth_strategy is not None:
            raise ValueError("Pass either token or auth_strategy, not both")
        config = ClientConfig(timeout=timeout, verify_ssl=verify_ssl)
        if polling is not None:
            config.polling = polling
        setup: list[ClientOption] = [set_base_url(base_url)]
        if user_agent:
            setup.append(set_user_agent(user_agent))
        if headers:
            setup.append(set_request_headers(headers))
        for option in (*setup, *options):
            option(config)
        self._config = config
        self._headers = MappingProxyType(dict(config.headers))
        self._auth = BearerTokenAuth(token) if token else auth_strategy
        self._session = session or requests.Session()
        self._on_request_completed: RequestCompletionCallback | None = None
        self._suppress_insecure_warning_if_needed()
        self.aws_accounts = AwsAccountsResource(self)
        self.blueprints = BlueprintsResource(self)
        self.users = UsersResource(self)

    @classmethod
    def from_token(cls, token: str, **kwargs: Any) -> CloudcraftClient:
        """Build a client authenticating with a Cloudcraft API key."""
        return cls(token=token, **kwargs)

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> CloudcraftClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - passthrough
        self.close()

    # Read-only configuration ---------------------------------------------------
    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def user_agent(self) -> str:
        return self._config.user_agent

    @property
    def headers(self) -> Mapping[str, str]:
        return self._headers

    @property
    def polling(self) -> PollingPolicy:
        return self._config.polling

    # Public API --------------------------------------------------------------
    def on_request_completed(self, callback: RequestCompletionCallback | None) -> None:
        """Register a hook called with the final request and response of every call."""
        self._on_request_completed = callback

    def new_request(
        self,
        method: str,
        path: str,
        body: Any | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> requests.PreparedRequest:
        return build_request(self._config, method, path, body, auth=self._auth, headers=headers)

    def do(
        self,
        method: str,
        path: str,
        body: Any | None = None,
        *,
        sink: ResultSink | None = None,
        headers: Mapping[str, str] | None = None,
        context: RequestContext | None = None,
    ) -> HttpResponse:
        """Send one API call and return the response envelope.

        Raises `ApiError` for non-2xx answers; the error keeps the response
        envelope so rate-limit headers stay readable.
        """
        prepared = self.new_request(method, path, body, headers=headers)
        self._log_request(prepared)
        return execute(
            self._session,
            prepared,
            config=self._config,
            sink=sink,
            context=context or BACKGROUND,
            on_completed=self._on_request_completed,
        )

    def request(
        self,
        method: str,
        path: str,
        body: Any | None = None,
        *,
        context: RequestContext | None = None,
    ) -> Any:
        """Send one API call and return the decoded JSON payload."""
        return self.do(method, path, body, sink=Typed(), context=context).data

    def close(self) -> None:
        self._session.close()

    # Internal helpers -------------------------------------------------------
    def _log_request(self, request: requests.PreparedRequest) -> None:
        logger.info("Cloudcraft request %s %s", request.method, request.url)

    def _suppress_insecure_warning_if_needed(self) -> None:
        if isinstance(self._config.verify_ssl, bool) and not self._config.verify_ssl:
            urllib3.disable_warnings(InsecureRequestWarning)
