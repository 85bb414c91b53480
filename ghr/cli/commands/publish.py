from __future__ import annotations

from pathlib import Path

import typer

from ghr.cli.context import build_context
from ghr.cli.files import expand_glob
from ghr.core.errors import ErrorCode
from ghr.core.result import Err
from ghr.github.models import ReleaseDescriptor
from ghr.output.console import Style
from ghr.output.errors import print_publish_error, publish_error_exit_code
from ghr.publish.orchestrator import Publisher


def publish(
    repo: str = typer.Argument(..., help="GitHub <owner>/<repo>."),
    tag: str = typer.Argument(..., help="Release tag, also used as the release name."),
    branch: str = typer.Argument(
        ..., help="Branch or commit to create the tag from if it does not exist."
    ),
    description: str = typer.Argument(..., help="Release description (markdown)."),
    files: str = typer.Argument(
        ...,
        help="Glob pattern of files to attach. Quote it so the shell does not expand it.",
    ),
    prerelease: bool = typer.Option(False, "--prerelease", help="Mark as a prerelease."),
    draft: bool = typer.Option(False, "--draft", help="Save as draft, don't publish."),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Dump requests and responses. Avoid with big files.",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        help="TOML settings file (api endpoint, timeouts, retry policy).",
    ),
) -> None:
    """Create (or reuse) a release and upload the matching files as assets."""
    ctx = build_context(slug=repo, debug=debug, config_path=config_file)
    console = ctx.console

    if ctx.config.debug:
        console.print(f"Glob pattern received: {files}", Style.DIM)

    expanded = expand_glob(files)
    if isinstance(expanded, Err):
        console.error(f"invalid glob pattern: {expanded.error}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    paths = expanded.value
    if ctx.config.debug:
        console.print(f"Expanded glob pattern: {[str(p) for p in paths]}", Style.DIM)
    if not paths:
        console.warning(f"no files match {files}; publishing the release without assets")

    descriptor = ReleaseDescriptor(
        tag=tag,
        target=branch,
        body=description,
        draft=draft,
        prerelease=prerelease,
    )
    publisher = Publisher(config=ctx.config, transport=ctx.transport, console=console)
    result = publisher.publish(descriptor, paths)
    if isinstance(result, Err):
        print_publish_error(result.error, console)
        raise typer.Exit(code=publish_error_exit_code(result.error))

    report = result.value
    console.success(
        f"{report.release.tag}: {len(report.files)} file(s), "
        f"{report.uploads} upload(s), {report.deletes} stale asset(s) removed"
    )
    console.print("Done")
