"""Arbitrary static header authentication."""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from types import MappingProxyType

from .base import AuthStrategy


class StaticHeaderAuth(AuthStrategy):
    """Send a fixed set of caller-supplied headers, e.g. a gateway API key."""

    def __init__(self, headers: Mapping[str, str]) -> None:
        self.headers = MappingProxyType(dict(headers))

    def apply(self, headers: MutableMapping[str, str]) -> None:
        headers.update(self.headers)
