from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

import typer

from ghr.core.config import Config, Settings, load_config_from_env, load_settings
from ghr.core.result import Err
from ghr.output.console import ConsoleProtocol, RichConsole
from ghr.output.errors import config_error_exit_code, print_config_error
from ghr.transport.http import Transport, UrllibTransport


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol
    transport: Transport


def build_context(
    *,
    slug: str | None,
    debug: bool = False,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> CLIContext:
    console = RichConsole()
    env = os.environ if environ is None else environ

    settings: Settings | None = None
    if config_path is not None:
        settings_result = load_settings(config_path.expanduser())
        if isinstance(settings_result, Err):
            print_config_error(settings_result.error, console)
            raise typer.Exit(code=config_error_exit_code(settings_result.error))
        settings = settings_result.value

    config_result = load_config_from_env(env, slug=slug, settings=settings)
    if isinstance(config_result, Err):
        print_config_error(config_result.error, console)
        raise typer.Exit(code=config_error_exit_code(config_result.error))

    config = config_result.value
    if debug and not config.debug:
        config = replace(config, debug=True)

    transport = UrllibTransport(
        config.token,
        timeout=config.timeout_seconds,
        debug=config.debug,
        console=console,
    )
    return CLIContext(config=config, console=console, transport=transport)
