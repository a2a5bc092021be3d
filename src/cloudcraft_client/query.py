"""Encode option dataclasses into URL query strings."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .exceptions import OptionsEncodingError, UrlParseError

QUERY_KEY = "query"


def query_field(
    name: str,
    *,
    default: Any = None,
    omitempty: bool = False,
    comma: bool = False,
) -> Any:
    """Declare a dataclass field that maps to the query key ``name``.

    ``omitempty`` drops zero values (``False``, ``0``, ``""``, empty lists).
    ``comma`` sends a list as one comma-joined value instead of repeating
    the key.
    """

    metadata = {QUERY_KEY: {"name": name, "omitempty": omitempty, "comma": comma}}
    if isinstance(default, (list, dict, set)):
        raise TypeError("use a tuple or None as a query_field default")
    return dataclasses.field(default=default, metadata=metadata)


def _encode_scalar(key: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        text = repr(value)
        return text[:-2] if text.endswith(".0") else text
    if isinstance(value, str):
        return value
    raise OptionsEncodingError(
        f"Cannot encode query option {key!r} of type {type(value).__name__}",
        details=value,
    )


def _is_empty(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return not value
    return value in (False, 0, "")


def _encode_value(key: str, value: Any, *, comma: bool) -> list[str]:
    if isinstance(value, (list, tuple)):
        encoded = [_encode_scalar(key, item) for item in value]
        return [",".join(encoded)] if comma else encoded
    return [_encode_scalar(key, value)]


def encode_options(options: Any) -> dict[str, list[str]]:
    """Convert an options dataclass or mapping into query key/value lists."""

    values: dict[str, list[str]] = {}
    if dataclasses.is_dataclass(options) and not isinstance(options, type):
        for item in dataclasses.fields(options):
            declared = item.metadata.get(QUERY_KEY)
            if declared is None:
                continue
            value = getattr(options, item.name)
            if value is None or (declared["omitempty"] and _is_empty(value)):
                continue
            values[declared["name"]] = _encode_value(declared["name"], value, comma=declared["comma"])
        return values
    if isinstance(options, Mapping):
        for key, value in options.items():
            if not isinstance(key, str):
                raise OptionsEncodingError(f"Query option keys must be strings, got {key!r}")
            if value is None:
                continue
            values[key] = _encode_value(key, value, comma=False)
        return values
    raise OptionsEncodingError(
        f"Query options must be a dataclass or mapping, got {type(options).__name__}"
    )


def add_options(url: str, options: Any | None) -> str:
    """Merge ``options`` into the query string of ``url``.

    Keys coming from ``options`` replace existing keys of the same name; all
    other parameters already present on ``url`` are kept.
    """

    if options is None:
        return url
    try:
        parts = urlsplit(url)
        existing = parse_qsl(parts.query, keep_blank_values=True)
    except ValueError as exc:
        raise UrlParseError(f"Invalid URL {url!r}: {exc}", details=url) from exc

    merged: dict[str, list[str]] = {}
    for key, value in existing:
        merged.setdefault(key, []).append(value)
    merged.update(encode_options(options))

    query = urlencode(sorted(merged.items()), doseq=True)
    return urlunsplit(parts._replace(query=query))
