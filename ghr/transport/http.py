"""Authenticated HTTP transport for the GitHub API.

This module provides:
- Transport: Protocol for a single request (injectable for tests)
- UrllibTransport: Real implementation using urllib
- MockTransport: Scripted implementation for testing

Every call returns ``Ok(HttpResponse)`` for 200/201/204 and ``Err(HttpError)``
otherwise. Errors keep the raw response body and status code so callers can
branch on them (e.g. "already exists" bodies, 5xx vs 4xx) without re-parsing.
"""

from __future__ import annotations

import ssl
import urllib.error
import urllib.request
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, BinaryIO, Protocol, runtime_checkable

from ghr.core.result import Err, Ok, Result
from ghr.output.console import Style

if TYPE_CHECKING:
    from ghr.output.console import ConsoleProtocol

__all__ = [
    "ACCEPT_HEADER",
    "SUCCESS_STATUSES",
    "HttpError",
    "HttpResponse",
    "MockTransport",
    "RequestBody",
    "Transport",
    "TransportCall",
    "UrllibTransport",
]

ACCEPT_HEADER = "application/vnd.github.v3+json"
SUCCESS_STATUSES = frozenset({200, 201, 204})

RequestBody = bytes | BinaryIO | None


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """A successful response.

    Attributes:
        status: HTTP status code (200, 201 or 204)
        body: Raw response body
    """

    status: int
    body: bytes = b""


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
        body: Raw response body, empty for network errors
    """

    url: str
    status: int
    message: str
    body: bytes = b""

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status < 600

    @property
    def is_network_error(self) -> bool:
        return self.status == 0

    def body_text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class Transport(Protocol):
    """Executes one authenticated request and classifies the outcome."""

    def request(
        self,
        method: str,
        url: str,
        content_type: str,
        body: RequestBody = None,
        length: int = 0,
        *,
        timeout: float | None = None,
    ) -> Result[HttpResponse, HttpError]:
        """Send a request.

        Args:
            method: HTTP method
            url: Absolute URL
            content_type: Value of the Content-Type header
            body: Request body; a file handle is streamed as-is
            length: Declared Content-Length; never inferred from ``body``
            timeout: Per-request timeout override in seconds

        Returns:
            Ok with HttpResponse for 200/201/204, Err with HttpError otherwise
        """
        ...


class UrllibTransport:
    """Real transport using urllib.

    Handles:
    - Token authorization and the pinned API Accept header
    - Explicit Content-Length for streamed file bodies
    - Optional request/response dumps when ``debug`` is set
    """

    def __init__(
        self,
        token: str,
        *,
        timeout: float = 60.0,
        user_agent: str = "ghr",
        debug: bool = False,
        console: ConsoleProtocol | None = None,
    ) -> None:
        self._token = token
        self.timeout = timeout
        self.user_agent = user_agent
        self.debug = debug
        self._console = console
        # Use system certificates
        self._ssl_context = ssl.create_default_context()

    def _headers(self, content_type: str, body: RequestBody, length: int) -> dict[str, str]:
        headers = {
            "Authorization": f"token {self._token}",
            "Accept": ACCEPT_HEADER,
            "Content-Type": content_type,
            "User-Agent": self.user_agent,
        }
        if body is not None:
            headers["Content-Length"] = str(length)
        return headers

    def _dump(self, title: str, lines: list[str]) -> None:
        if not self.debug or self._console is None:
            return
        self._console.print(f"================ {title} ================", Style.DIM)
        for line in lines:
            self._console.print(line, Style.DIM)

    def request(
        self,
        method: str,
        url: str,
        content_type: str,
        body: RequestBody = None,
        length: int = 0,
        *,
        timeout: float | None = None,
    ) -> Result[HttpResponse, HttpError]:
        headers = self._headers(content_type, body, length)
        self._dump(
            "REQUEST DUMP",
            [f"{method} {url}"]
            + [
                f"{k}: {'token ***' if k == 'Authorization' else v}"
                for k, v in headers.items()
            ]
            + ([body.decode("utf-8", errors="replace")] if isinstance(body, bytes) else []),
        )

        try:
            req = urllib.request.Request(url, data=body, headers=headers, method=method)
            with urllib.request.urlopen(
                req,
                timeout=timeout if timeout is not None else self.timeout,
                context=self._ssl_context,
            ) as response:
                status = int(response.status)
                data = response.read()
        except urllib.error.HTTPError as e:
            data = e.read() or b""
            self._dump("RESPONSE DUMP", [f"{e.code} {e.reason}", data.decode("utf-8", "replace")])
            return Err(
                HttpError(
                    url=url,
                    status=e.code,
                    message=f"GitHub returned an error: {e.reason}",
                    body=data,
                )
            )
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

        self._dump("RESPONSE DUMP", [str(status), data.decode("utf-8", errors="replace")])

        if status not in SUCCESS_STATUSES:
            return Err(
                HttpError(
                    url=url,
                    status=status,
                    message=f"GitHub returned an unexpected status: {status}",
                    body=data,
                )
            )
        return Ok(HttpResponse(status=status, body=data))


@dataclass(frozen=True, slots=True)
class TransportCall:
    """A request recorded by MockTransport."""

    method: str
    url: str
    content_type: str
    length: int
    body: bytes | None


def _empty_calls() -> list[TransportCall]:
    return []


def _empty_routes() -> dict[tuple[str, str], deque[HttpResponse | HttpError]]:
    return {}


@dataclass
class MockTransport:
    """Mock transport for testing.

    Responses are queued per (method, url). Each call pops the next queued
    response; the last one keeps answering once the queue is down to it.

    Usage:
        transport = MockTransport()
        transport.add("GET", "https://api.example.com/x", HttpResponse(200, b"{}"))
        result = transport.request("GET", "https://api.example.com/x", "application/json")
        assert result == Ok(HttpResponse(200, b"{}"))
    """

    calls: list[TransportCall] = field(default_factory=_empty_calls)
    _routes: dict[tuple[str, str], deque[HttpResponse | HttpError]] = field(
        default_factory=_empty_routes
    )

    def add(self, method: str, url: str, *responses: HttpResponse | HttpError) -> None:
        """Queue responses for ``method url``."""
        queue = self._routes.setdefault((method.upper(), url), deque())
        queue.extend(responses)

    def request(
        self,
        method: str,
        url: str,
        content_type: str,
        body: RequestBody = None,
        length: int = 0,
        *,
        timeout: float | None = None,
    ) -> Result[HttpResponse, HttpError]:
        raw: bytes | None
        if body is None or isinstance(body, bytes):
            raw = body
        else:
            raw = body.read()
        self.calls.append(TransportCall(method.upper(), url, content_type, length, raw))

        queue = self._routes.get((method.upper(), url))
        if not queue:
            return Err(HttpError(url=url, status=404, message="Not found (mock)", body=b""))

        response = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def calls_for(self, method: str) -> list[TransportCall]:
        return [c for c in self.calls if c.method == method.upper()]
