"""Blueprint operations."""

from __future__ import annotations

from typing import IO, Any

from ..context import RequestContext
from ..http import HttpResponse
from ..models import (
    Blueprint,
    BlueprintCreateRequest,
    BlueprintExportRequest,
    BlueprintImage,
    BlueprintUpdateRequest,
)
from ..query import add_options
from ..sinks import RawBytes
from .base import ResourceBase


def _blueprint_list(payload: Any) -> list[Blueprint]:
    return [Blueprint.from_dict(item) for item in payload["blueprints"]]


class BlueprintsResource(ResourceBase):
    """Create, read, update, delete and render blueprints."""

    base_path = "blueprint"

    def list(self, *, context: RequestContext | None = None) -> list[Blueprint]:
        return self._fetch("GET", self.base_path, _blueprint_list, context=context)

    def get(self, blueprint_id: str, *, context: RequestContext | None = None) -> Blueprint:
        self._require("blueprint_id", blueprint_id)
        return self._fetch("GET", self._path(blueprint_id), Blueprint.from_dict, context=context)

    def create(
        self, request: BlueprintCreateRequest, *, context: RequestContext | None = None
    ) -> Blueprint:
        self._require_body("request", request)
        return self._fetch(
            "POST", self.base_path, Blueprint.from_dict, body=request, context=context
        )

    def update(
        self,
        blueprint_id: str,
        request: BlueprintUpdateRequest,
        *,
        context: RequestContext | None = None,
    ) -> Blueprint:
        self._require("blueprint_id", blueprint_id)
        self._require_body("request", request)
        return self._fetch(
            "PUT", self._path(blueprint_id), Blueprint.from_dict, body=request, context=context
        )

    def delete(self, blueprint_id: str, *, context: RequestContext | None = None) -> HttpResponse:
        self._require("blueprint_id", blueprint_id)
        return self._delete(self._path(blueprint_id), context=context)

    def export(
        self,
        blueprint_id: str,
        request: BlueprintExportRequest,
        *,
        target: IO[bytes] | None = None,
        context: RequestContext | None = None,
    ) -> BlueprintImage:
        """Render a blueprint as an image or document (svg, png, pdf, mxGraph).

        When ``target`` is given the rendered bytes are streamed into it and
        ``BlueprintImage.content`` is left empty.
        """
        self._require("blueprint_id", blueprint_id)
        self._require_body("request", request)
        self._require("format", request.format)
        path = add_options(self._path(blueprint_id, request.format), request.parameters)
        sink = RawBytes(target)
        self._download(path, sink, context=context)
        return BlueprintImage(
            content_type=sink.content_type,
            content=sink.getvalue() if target is None else b"",
            parameters=request.parameters,
        )
