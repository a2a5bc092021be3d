"""Destinations a successful response body is written into."""

from __future__ import annotations

import io
from collections.abc import Callable
from typing import IO, Any, Generic, TypeVar

from requests import Response

from .exceptions import DecodeError

T = TypeVar("T")

CHUNK_SIZE = 64 * 1024


class ResultSink:
    """Consume the body of a 2xx response and expose the decoded value."""

    def consume(self, response: Response) -> Any:  # pragma: no cover - interface
        raise NotImplementedError


class RawBytes(ResultSink):
    """Stream the body verbatim, without any JSON decoding.

    Used for exports and snapshots (SVG, PNG, PDF, ...). Bytes go into
    ``target`` when one is given, otherwise into an in-memory buffer.
    """

    def __init__(self, target: IO[bytes] | None = None) -> None:
        self.target: IO[bytes] = target if target is not None else io.BytesIO()
        self.content_type: str | None = None
        self.bytes_written = 0

    def consume(self, response: Response) -> IO[bytes]:
        self.content_type = response.headers.get("Content-Type")
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if chunk:
                self.target.write(chunk)
                self.bytes_written += len(chunk)
        return self.target

    def getvalue(self) -> bytes:
        if isinstance(self.target, io.BytesIO):
            return self.target.getvalue()
        raise TypeError("getvalue() is only available for the in-memory buffer")


class Typed(ResultSink, Generic[T]):
    """Decode the body as JSON, then hand it to ``converter``."""

    def __init__(self, converter: Callable[[Any], T] | None = None) -> None:
        self.converter = converter

    def consume(self, response: Response) -> T | Any:
        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodeError(
                "Response did not contain valid JSON",
                status_code=response.status_code,
                details=str(exc),
            ) from exc
        if self.converter is None:
            return payload
        try:
            return self.converter(payload)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise DecodeError(
                f"Response did not match the expected shape: {exc}",
                status_code=response.status_code,
                details=payload,
            ) from exc
