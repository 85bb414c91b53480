"""Error presentation utilities.

Centralized error formatting and exit code mapping for publish failures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ghr.core.errors import ErrorCode
from ghr.output.console import Style
from ghr.publish.errors import PublishError

if TYPE_CHECKING:
    from ghr.core.config import ConfigError
    from ghr.output.console import ConsoleProtocol

__all__ = [
    "config_error_exit_code",
    "print_config_error",
    "print_publish_error",
    "publish_error_exit_code",
]

# Remote bodies can be whole HTML pages; keep the hint readable.
_MAX_HINT_CHARS = 500


def print_publish_error(error: PublishError, console: ConsoleProtocol) -> None:
    """Print a fatal publish error with its hint."""
    console.error(error.message)
    if error.status:
        console.print(f"status: {error.status}", Style.DIM)
    if error.hint:
        hint = error.hint
        if len(hint) > _MAX_HINT_CHARS:
            hint = hint[:_MAX_HINT_CHARS] + "..."
        console.print(f"hint: {hint}", Style.DIM)


def publish_error_exit_code(error: PublishError) -> int:
    """Get exit code for a publish error."""
    match error:
        case PublishError(kind="file_unreadable"):
            return int(ErrorCode.IO_ERROR)
        case PublishError(kind="release_failed", status=0):
            return int(ErrorCode.NETWORK_ERROR)
        case PublishError(kind="retry_limit" | "release_failed" | "invalid_response"):
            return int(ErrorCode.PUBLISH_ERROR)
    return int(ErrorCode.PUBLISH_ERROR)


def print_config_error(error: ConfigError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def config_error_exit_code(error: ConfigError) -> int:
    if error.kind == "invalid_slug":
        return int(ErrorCode.USER_ERROR)
    return int(ErrorCode.CONFIG_ERROR)
