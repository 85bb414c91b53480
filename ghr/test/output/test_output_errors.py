"""Tests for ghr.output.errors module."""

from __future__ import annotations

import pytest

from ghr.core.config import ConfigError
from ghr.core.errors import ErrorCode
from ghr.output.console import MockConsole, Style
from ghr.output.errors import (
    config_error_exit_code,
    print_config_error,
    print_publish_error,
    publish_error_exit_code,
)
from ghr.publish.errors import PublishError


class TestPublishErrorExitCode:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (PublishError(kind="file_unreadable", message="x"), ErrorCode.IO_ERROR),
            (PublishError(kind="release_failed", message="x", status=0), ErrorCode.NETWORK_ERROR),
            (PublishError(kind="release_failed", message="x", status=403), ErrorCode.PUBLISH_ERROR),
            (PublishError(kind="retry_limit", message="x", status=502), ErrorCode.PUBLISH_ERROR),
            (PublishError(kind="invalid_response", message="x"), ErrorCode.PUBLISH_ERROR),
        ],
    )
    def test_mapping(self, error: PublishError, code: ErrorCode) -> None:
        assert publish_error_exit_code(error) == int(code)


class TestPrintPublishError:
    def test_prints_message_status_and_hint(self) -> None:
        console = MockConsole()
        print_publish_error(
            PublishError(kind="release_failed", message="boom", hint="Bad credentials", status=401),
            console,
        )
        assert console.messages == ["error: boom", "status: 401", "hint: Bad credentials"]
        assert console.outputs[1].style == Style.DIM

    def test_long_hint_is_truncated(self) -> None:
        console = MockConsole()
        print_publish_error(PublishError(kind="retry_limit", message="x", hint="h" * 2000), console)
        hint = console.find("hint:")[0].message
        assert hint.endswith("...")
        assert len(hint) < 600


class TestConfigErrors:
    def test_invalid_slug_is_user_error(self) -> None:
        error = ConfigError("invalid format", kind="invalid_slug")
        assert config_error_exit_code(error) == int(ErrorCode.USER_ERROR)

    def test_missing_token_is_config_error(self) -> None:
        error = ConfigError("no token", kind="missing_token", hint="set it")
        assert config_error_exit_code(error) == int(ErrorCode.CONFIG_ERROR)

        console = MockConsole()
        print_config_error(error, console)
        assert console.messages == ["error: no token", "hint: set it"]
