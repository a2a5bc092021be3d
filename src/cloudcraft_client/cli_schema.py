"""Schema describing important fields for CLI table rendering."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

Row = Mapping[str, Any]
ValueExtractor = Callable[[Row], Any]
ValueFormatter = Callable[[Any], str]
SortKey = Callable[[Row], Any]


@dataclass(frozen=True)
class Column:
    """Describe how to pull and format a column for Rich tables."""

    header: str
    keys: tuple[str, ...] = ()
    extractor: ValueExtractor | None = None
    formatter: ValueFormatter | None = None
    justify: str = "left"

    def render(self, row: Row) -> str:
        value: Any | None = None
        if self.keys:
            for key in self.keys:
                if key in row:
                    value = row.get(key)
                    if value is not None:
                        break
        if value is None and self.extractor:
            value = self.extractor(row)
        if value is None:
            return ""
        if self.formatter:
            formatted = self.formatter(value)
            return "" if formatted is None else str(formatted)
        return str(value)


@dataclass(frozen=True)
class TableView:
    """Describe a Rich table for a CLI command."""

    title: str
    columns: tuple[Column, ...]
    sort_key: SortKey | None = None


def _datetime_formatter(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    return str(value)


def _list_formatter(*, max_chars: int = 24, sep: str = ", ") -> ValueFormatter:
    def _formatter(value: Any) -> str:
        if isinstance(value, (list, tuple)):
            s = sep.join(str(v) for v in value)
        else:
            s = str(value)
        return s if len(s) <= max_chars else s[: max_chars - 1] + "…"

    return _formatter


def _sort_name(row: Row) -> str:
    return str(row.get("name") or "").lower()


CLI_TABLE_VIEWS: dict[str, TableView] = {
    "blueprints.list": TableView(
        title="Blueprints",
        columns=(
            Column("Name", keys=("name",)),
            Column("ID", keys=("id",)),
            Column("Tags", keys=("tags",), formatter=_list_formatter()),
            Column("Updated", keys=("updated_at",), formatter=_datetime_formatter),
        ),
        sort_key=_sort_name,
    ),
    "accounts.list": TableView(
        title="AWS Accounts",
        columns=(
            Column("Name", keys=("name",)),
            Column("ID", keys=("id",)),
            Column("Role ARN", keys=("role_arn",)),
            Column("Created", keys=("created_at",), formatter=_datetime_formatter),
        ),
        sort_key=_sort_name,
    ),
}
