from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PublishErrorKind = Literal[
    "release_failed",
    "invalid_response",
    "file_unreadable",
    "retry_limit",
]


@dataclass(frozen=True, slots=True)
class PublishError:
    """A fatal publish failure.

    ``status`` and ``body`` carry the last remote response when one exists,
    so callers can tell a 5xx outage from a 4xx rejection.
    """

    kind: PublishErrorKind
    message: str
    hint: str | None = None
    status: int = 0
    body: bytes = b""
