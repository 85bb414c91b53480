"""HTTP transport layer."""

from .http import HttpError, HttpResponse, MockTransport, Transport, UrllibTransport

__all__ = [
    "HttpError",
    "HttpResponse",
    "MockTransport",
    "Transport",
    "UrllibTransport",
]
