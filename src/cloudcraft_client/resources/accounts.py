"""AWS account operations."""

from __future__ import annotations

from typing import IO, Any

from ..context import RequestContext
from ..http import HttpResponse
from ..models import (
    AwsAccount,
    AwsAccountCreateOrUpdateRequest,
    AwsAccountIamParameters,
    AwsAccountSnapshot,
    AwsAccountSnapshotRequest,
)
from ..query import add_options
from ..sinks import RawBytes
from .base import ResourceBase


def _account_list(payload: Any) -> list[AwsAccount]:
    return [AwsAccount.from_dict(item) for item in payload["accounts"]]


class AwsAccountsResource(ResourceBase):
    """Manage AWS accounts linked to Cloudcraft and snapshot their inventory."""

    base_path = "aws/account"

    def list(self, *, context: RequestContext | None = None) -> list[AwsAccount]:
        return self._fetch("GET", self.base_path, _account_list, context=context)

    def get(self, account_id: str, *, context: RequestContext | None = None) -> AwsAccount:
        self._require("account_id", account_id)
        return self._fetch("GET", self._path(account_id), AwsAccount.from_dict, context=context)

    def create(
        self, request: AwsAccountCreateOrUpdateRequest, *, context: RequestContext | None = None
    ) -> AwsAccount:
        self._require_body("request", request)
        return self._fetch(
            "POST", self.base_path, AwsAccount.from_dict, body=request, context=context
        )

    def update(
        self,
        account_id: str,
        request: AwsAccountCreateOrUpdateRequest,
        *,
        context: RequestContext | None = None,
    ) -> AwsAccount:
        self._require("account_id", account_id)
        self._require_body("request", request)
        return self._fetch(
            "PUT", self._path(account_id), AwsAccount.from_dict, body=request, context=context
        )

    def delete(self, account_id: str, *, context: RequestContext | None = None) -> HttpResponse:
        self._require("account_id", account_id)
        return self._delete(self._path(account_id), context=context)

    def snapshot(
        self,
        account_id: str,
        request: AwsAccountSnapshotRequest,
        *,
        target: IO[bytes] | None = None,
        context: RequestContext | None = None,
    ) -> AwsAccountSnapshot:
        """Render the live AWS inventory of one region.

        Snapshots are computed asynchronously; the API answers 202 until the
        rendering is ready, which the client polls for transparently.
        """
        self._require("account_id", account_id)
        self._require_body("request", request)
        self._require("region", request.region)
        self._require("format", request.format)
        path = add_options(
            self._path(account_id, request.region, request.format), request.parameters
        )
        sink = RawBytes(target)
        self._download(path, sink, context=context)
        return AwsAccountSnapshot(
            content_type=sink.content_type,
            content=sink.getvalue() if target is None else b"",
            parameters=request.parameters,
        )

    def iam_parameters(self, *, context: RequestContext | None = None) -> AwsAccountIamParameters:
        """Return the values needed to create the read-only IAM role."""
        return self._fetch(
            "GET",
            f"{self.base_path}/iamParameters",
            AwsAccountIamParameters.from_dict,
            context=context,
        )
