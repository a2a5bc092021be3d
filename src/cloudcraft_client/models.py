"""Request and response models for the Cloudcraft API."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .query import query_field

Diagram = list[dict[str, Any]]


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    return datetime.fromisoformat(text)


def _format_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def _compact(payload: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value not in (None, "", [])}


# Users ---------------------------------------------------------------------
@dataclass(slots=True)
class User:
    id: str = ""
    name: str = ""
    email: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    accessed_at: datetime | None = None
    creator_id: str = ""
    last_user_id: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> User:
        return cls(
            id=payload.get("id") or "",
            name=payload.get("name") or "",
            email=payload.get("email") or "",
            created_at=_parse_datetime(payload.get("createdAt")),
            updated_at=_parse_datetime(payload.get("updatedAt")),
            accessed_at=_parse_datetime(payload.get("accessedAt")),
            creator_id=payload.get("CreatorId") or "",
            last_user_id=payload.get("LastUserId") or "",
        )


# Blueprints ----------------------------------------------------------------
_BLUEPRINT_DATA_KEYS = {
    "grid": "grid",
    "link_key": "linkKey",
    "name": "name",
    "text": "text",
    "edges": "edges",
    "icons": "icons",
    "nodes": "nodes",
    "groups": "groups",
    "images": "images",
    "surfaces": "surfaces",
    "connectors": "connectors",
    "disabled_layers": "disabledLayers",
}


@dataclass(slots=True)
class BlueprintData:
    """The diagram itself. Keys the client does not model are kept in ``extra``."""

    grid: str = ""
    link_key: str = ""
    name: str = ""
    text: Diagram = field(default_factory=list)
    edges: Diagram = field(default_factory=list)
    icons: Diagram = field(default_factory=list)
    nodes: Diagram = field(default_factory=list)
    groups: Diagram = field(default_factory=list)
    images: Diagram = field(default_factory=list)
    surfaces: Diagram = field(default_factory=list)
    connectors: Diagram = field(default_factory=list)
    disabled_layers: Diagram = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> BlueprintData:
        known = set(_BLUEPRINT_DATA_KEYS.values())
        kwargs: dict[str, Any] = {}
        for attr, key in _BLUEPRINT_DATA_KEYS.items():
            value = payload.get(key)
            if value is not None:
                kwargs[attr] = value
        extra = {key: value for key, value in payload.items() if key not in known}
        return cls(**kwargs, extra=extra)

    def to_dict(self) -> dict[str, Any]:
        body = dict(self.extra)
        for attr, key in _BLUEPRINT_DATA_KEYS.items():
            body[key] = getattr(self, attr)
        return _compact(body)


@dataclass(slots=True)
class Blueprint:
    id: str = ""
    name: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    creator_id: str = ""
    last_user_id: str = ""
    read_access: list[str] = field(default_factory=list)
    write_access: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    data: BlueprintData | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Blueprint:
        data = payload.get("data")
        return cls(
            id=payload.get("id") or "",
            name=payload.get("name") or "",
            created_at=_parse_datetime(payload.get("createdAt")),
            updated_at=_parse_datetime(payload.get("updatedAt")),
            creator_id=payload.get("CreatorId") or "",
            last_user_id=payload.get("LastUserId") or "",
            read_access=list(payload.get("readAccess") or []),
            write_access=list(payload.get("writeAccess") or []),
            tags=list(payload.get("tags") or []),
            data=BlueprintData.from_dict(data) if isinstance(data, Mapping) else None,
        )


@dataclass(slots=True)
class BlueprintCreateRequest:
    data: BlueprintData

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data.to_dict()}


@dataclass(slots=True)
class BlueprintUpdateRequest:
    data: BlueprintData

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data.to_dict()}


@dataclass(slots=True)
class BlueprintExportParameters:
    """Rendering options for ``GET blueprint/{id}/{format}``. ``None`` is not sent."""

    grid: bool | None = query_field("grid")
    height: int | None = query_field("height")
    landscape: bool | None = query_field("landscape")
    paper_size: str | None = query_field("paperSize")
    scale: float | None = query_field("scale")
    transparent: bool | None = query_field("transparent")
    width: int | None = query_field("width")


@dataclass(slots=True)
class BlueprintExportRequest:
    format: str
    parameters: BlueprintExportParameters | None = None


@dataclass(slots=True)
class BlueprintImage:
    content_type: str | None
    content: bytes
    parameters: BlueprintExportParameters | None = None


# AWS accounts ----------------------------------------------------------------
@dataclass(slots=True)
class AwsAccount:
    id: str = ""
    name: str = ""
    role_arn: str = ""
    external_id: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    creator_id: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> AwsAccount:
        return cls(
            id=payload.get("id") or "",
            name=payload.get("name") or "",
            role_arn=payload.get("roleArn") or "",
            external_id=payload.get("externalId") or "",
            created_at=_parse_datetime(payload.get("createdAt")),
            updated_at=_parse_datetime(payload.get("updatedAt")),
            creator_id=payload.get("CreatorId") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "name": self.name,
                "roleArn": self.role_arn,
                "externalId": self.external_id,
                "createdAt": _format_datetime(self.created_at),
                "updatedAt": _format_datetime(self.updated_at),
                "CreatorId": self.creator_id,
            }
        )


@dataclass(slots=True)
class AwsAccountCreateOrUpdateRequest:
    name: str
    role_arn: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "roleArn": self.role_arn}


@dataclass(slots=True)
class AwsAccountSnapshotParameters:
    """Rendering options for account snapshots. Zero values are not sent."""

    autoconnect: bool | None = query_field("autoconnect", omitempty=True)
    exclude: tuple[str, ...] | None = query_field("exclude", omitempty=True, comma=True)
    filter: str | None = query_field("filter", omitempty=True)
    grid: bool | None = query_field("grid", omitempty=True)
    height: int | None = query_field("height", omitempty=True)
    label: bool | None = query_field("label", omitempty=True)
    landscape: bool | None = query_field("landscape", omitempty=True)
    paper_size: str | None = query_field("paperSize", omitempty=True)
    projection: str | None = query_field("projection", omitempty=True)
    scale: float | None = query_field("scale", omitempty=True)
    transparent: bool | None = query_field("transparent", omitempty=True)
    width: int | None = query_field("width", omitempty=True)


@dataclass(slots=True)
class AwsAccountSnapshotRequest:
    format: str
    region: str
    parameters: AwsAccountSnapshotParameters | None = None


@dataclass(slots=True)
class AwsAccountSnapshot:
    content_type: str | None
    content: bytes
    parameters: AwsAccountSnapshotParameters | None = None


@dataclass(slots=True)
class AwsAccountIamParameters:
    account_id: str = ""
    external_id: str = ""
    aws_console_url: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> AwsAccountIamParameters:
        return cls(
            account_id=payload.get("accountId") or "",
            external_id=payload.get("externalId") or "",
            aws_console_url=payload.get("awsConsoleUrl") or "",
        )
