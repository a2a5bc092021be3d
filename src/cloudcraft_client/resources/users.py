"""User operations."""

from __future__ import annotations

from ..context import RequestContext
from ..models import User
from .base import ResourceBase


class UsersResource(ResourceBase):
    """Look up Cloudcraft users."""

    base_path = "user"

    def get(self, user_id: str, *, context: RequestContext | None = None) -> User:
        self._require("user_id", user_id)
        return self._fetch("GET", self._path(user_id), User.from_dict, context=context)

    def me(self, *, context: RequestContext | None = None) -> User:
        """Return the user that owns the API key."""
        return self.get("me", context=context)
