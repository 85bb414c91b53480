"""Publish a release and its assets.

``Publisher`` resolves the release once, then reconciles each file in the
order given. The first fatal error stops the run: later files are never
attempted and assets already uploaded are left in place.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ghr.core.result import Err, Ok, Result
from ghr.github.api import ReleasesApi
from ghr.github.models import ReleaseDescriptor
from ghr.publish.reconcile import FileReconciler, ReconcileOutcome, ReconcileSession
from ghr.publish.resolver import resolve_release

if TYPE_CHECKING:
    from ghr.core.config import Config
    from ghr.github.models import Release
    from ghr.output.console import ConsoleProtocol
    from ghr.publish.errors import PublishError
    from ghr.transport.http import Transport

__all__ = ["PublishReport", "Publisher", "create_release"]


@dataclass(frozen=True, slots=True)
class PublishReport:
    release: Release
    created: bool
    files: tuple[ReconcileOutcome, ...]

    @property
    def uploads(self) -> int:
        return sum(f.uploads for f in self.files)

    @property
    def deletes(self) -> int:
        return sum(f.deletes for f in self.files)


class Publisher:
    """Create-or-adopt a release and converge its assets.

    The transport and the sleep function are injected so the whole engine
    runs against a fake API in tests.
    """

    def __init__(
        self,
        *,
        config: Config,
        transport: Transport,
        console: ConsoleProtocol,
        sleep: Callable[[float], None] = time.sleep,
        on_transition: Callable[[ReconcileSession], None] | None = None,
    ) -> None:
        self._config = config
        self._console = console
        self._sleep = sleep
        self._on_transition = on_transition
        self._api = ReleasesApi(
            transport,
            config.repo_api_url,
            upload_timeout=config.upload_timeout_seconds,
        )

    def publish(
        self,
        descriptor: ReleaseDescriptor,
        paths: Sequence[Path],
    ) -> Result[PublishReport, PublishError]:
        self._console.header(f"Publishing {descriptor.tag} to {self._config.slug}")

        resolved = resolve_release(self._api, descriptor, self._console)
        if isinstance(resolved, Err):
            return resolved

        release = resolved.value.release
        reconciler = FileReconciler(
            api=self._api,
            upload_base=resolved.value.upload_base,
            tag=release.tag,
            policy=self._config.retry,
            console=self._console,
            sleep=self._sleep,
            on_transition=self._on_transition,
            release_id=release.id if release.draft else None,
        )

        outcomes: list[ReconcileOutcome] = []
        for path in paths:
            outcome = reconciler.reconcile(path)
            if isinstance(outcome, Err):
                return outcome
            outcomes.append(outcome.value)

        return Ok(
            PublishReport(
                release=release,
                created=resolved.value.created,
                files=tuple(outcomes),
            )
        )


def create_release(
    *,
    config: Config,
    transport: Transport,
    console: ConsoleProtocol,
    tag: str,
    branch: str,
    description: str,
    paths: Sequence[Path],
) -> Result[PublishReport, PublishError]:
    """Publish a regular (non-draft, non-prerelease) release with ``paths``.

    If the release already exists, the files are attached to it.
    """
    descriptor = ReleaseDescriptor(tag=tag, target=branch, body=description)
    publisher = Publisher(config=config, transport=transport, console=console)
    return publisher.publish(descriptor, paths)
