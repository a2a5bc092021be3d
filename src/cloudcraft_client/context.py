"""Per-call cancellation and deadline carrier."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from .exceptions import RequestCancelledError


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Bound one logical API call.

    ``deadline`` is a ``time.monotonic()`` timestamp. ``cancel_event`` lets
    another thread abort the call between attempts; an attempt already on the
    wire is only interrupted by its own socket timeout.
    """

    timeout: float | None = None
    deadline: float | None = None
    cancel_event: threading.Event | None = None

    @classmethod
    def with_timeout(
        cls, seconds: float, *, cancel_event: threading.Event | None = None
    ) -> RequestContext:
        return cls(deadline=time.monotonic() + seconds, cancel_event=cancel_event)

    def remaining(self) -> float | None:
        if self.deadline is None:
            return None
        return self.deadline - time.monotonic()

    def check(self) -> None:
        """Raise `RequestCancelledError` when the call must not continue."""

        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RequestCancelledError("Request was cancelled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise RequestCancelledError("Request deadline exceeded")

    def attempt_timeout(self, default: float | None) -> float | None:
        candidates = [value for value in (default, self.timeout, self.remaining()) if value is not None]
        if not candidates:
            return None
        return max(min(candidates), 0.001)


BACKGROUND = RequestContext()
