"""Common helpers for resource wrappers."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from ..exceptions import ArgumentError
from ..http import HttpResponse
from ..sinks import ResultSink, Typed

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..client import CloudcraftClient
    from ..context import RequestContext


class ResourceBase:
    """Provide shared helpers for resource modules."""

    base_path = ""

    def __init__(self, client: CloudcraftClient) -> None:
        self._client = client

    def _path(self, *segments: str) -> str:
        escaped = [quote(segment, safe="") for segment in segments]
        return "/".join([self.base_path, *escaped])

    def _fetch(
        self,
        method: str,
        path: str,
        converter: Callable[[Any], Any],
        *,
        body: Any | None = None,
        context: RequestContext | None = None,
    ) -> Any:
        response = self._client.do(method, path, body, sink=Typed(converter), context=context)
        return response.data

    def _download(
        self, path: str, sink: ResultSink, *, context: RequestContext | None = None
    ) -> HttpResponse:
        return self._client.do("GET", path, sink=sink, context=context)

    def _delete(self, path: str, *, context: RequestContext | None = None) -> HttpResponse:
        return self._client.do("DELETE", path, context=context)

    @staticmethod
    def _require(argument: str, value: str | None) -> str:
        if not value:
            raise ArgumentError(argument, "cannot be empty")
        return value

    @staticmethod
    def _require_body(argument: str, body: Any | None) -> Any:
        if body is None:
            raise ArgumentError(argument, "cannot be None")
        return body
