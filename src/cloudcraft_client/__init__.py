"""High-level Cloudcraft client entrypoints."""
from .client import CloudcraftClient
from .config import ClientConfig, PollingPolicy
from .context import RequestContext
from .exceptions import ApiError, CloudcraftError
from .http import HttpResponse
from .sinks import RawBytes, Typed

__all__ = [
    "CloudcraftClient",
    "ClientConfig",
    "PollingPolicy",
    "RequestContext",
    "CloudcraftError",
    "ApiError",
    "HttpResponse",
    "RawBytes",
    "Typed",
]
