"""Bearer token authentication."""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass, field

from .base import AuthStrategy


@dataclass(frozen=True, slots=True)
class BearerTokenAuth(AuthStrategy):
    """Apply a Cloudcraft API key as a bearer token."""

    token: str = field(repr=False)

    def apply(self, headers: MutableMapping[str, str]) -> None:
        headers["Authorization"] = f"Bearer {self.token}"
