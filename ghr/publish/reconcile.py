"""Per-file asset reconciliation.

Drives one local file to "the release has an asset with this name and this
exact byte size". The upload call's own result is never trusted: every
iteration re-reads the release's asset list and acts on what is actually
there.

Steps:

    CHECKING  -> SUCCESS                  asset present, size matches
    CHECKING  -> DELETING                 asset present, size differs
    CHECKING  -> gate                     asset absent, or lookup failed
    DELETING  -> gate                     delete failures are ignored
    gate      -> FATAL                    attempt budget spent
    gate      -> BACKOFF | UPLOADING      BACKOFF for every attempt but the first
    BACKOFF   -> UPLOADING
    UPLOADING -> CHECKING                 whatever the upload returned

The asset is looked up by the local file's base name. GitHub rewrites some
names on upload (a space becomes a dot, for example); such a file is never
found under its own name and uses up its whole retry budget, so it is
warned about before the first check.
"""

from __future__ import annotations

import re
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from ghr.core.result import Err, Ok, Result
from ghr.publish.errors import PublishError
from ghr.publish.fsm import FINISH, StepHandler, StepOutcome, advance, run_state_machine
from ghr.publish.inspector import find_asset

if TYPE_CHECKING:
    from ghr.core.config import RetryPolicy
    from ghr.github.api import ReleasesApi
    from ghr.github.models import Asset
    from ghr.output.console import ConsoleProtocol
    from ghr.transport.http import HttpError

__all__ = [
    "FileReconciler",
    "ReconcileOutcome",
    "ReconcileSession",
    "ReconcileStep",
    "reconcile_file",
]

# Characters GitHub keeps in asset names; a leading dot is rewritten too.
_PORTABLE_NAME = re.compile(r"[A-Za-z0-9_+-][A-Za-z0-9._+-]*")


class ReconcileStep(StrEnum):
    CHECKING = "checking"
    DELETING = "deleting"
    BACKOFF = "backoff"
    UPLOADING = "uploading"
    SUCCESS = "success"
    FATAL = "fatal"


@dataclass(frozen=True, slots=True)
class ReconcileSession:
    """State of one file's reconciliation.

    Attributes:
        step: Current step
        attempt: Upload attempts made so far
        asset: Asset seen by the last check when it has to be deleted
        uploads: Upload calls issued
        deletes: Successful delete calls
        last_error: Most recent upload failure, kept for the fatal report
        error: Set when the step is FATAL
    """

    step: ReconcileStep = ReconcileStep.CHECKING
    attempt: int = 0
    asset: Asset | None = None
    uploads: int = 0
    deletes: int = 0
    last_error: HttpError | None = None
    error: PublishError | None = None


@dataclass(frozen=True, slots=True)
class ReconcileOutcome:
    path: Path
    name: str
    size: int
    uploads: int
    deletes: int

    @property
    def already_current(self) -> bool:
        """True when the asset was correct before anything was uploaded."""
        return self.uploads == 0


@dataclass(frozen=True, slots=True)
class _FileJob:
    path: Path
    name: str
    size: int


class FileReconciler:
    """Converges release assets for one release, one file at a time."""

    def __init__(
        self,
        *,
        api: ReleasesApi,
        upload_base: str,
        tag: str,
        policy: RetryPolicy,
        console: ConsoleProtocol,
        sleep: Callable[[float], None] = time.sleep,
        on_transition: Callable[[ReconcileSession], None] | None = None,
        release_id: int | None = None,
    ) -> None:
        self._api = api
        self._upload_base = upload_base
        self._tag = tag
        self._release_id = release_id
        self._policy = policy
        self._console = console
        self._sleep = sleep
        self._on_transition = on_transition

    def reconcile(self, path: Path) -> Result[ReconcileOutcome, PublishError]:
        try:
            size = path.stat().st_size
        except OSError as e:
            return Err(
                PublishError(
                    kind="file_unreadable",
                    message=f"cannot read {path}: {e.strerror or e}",
                )
            )
        if not path.is_file():
            return Err(PublishError(kind="file_unreadable", message=f"not a file: {path}"))

        job = _FileJob(path=path, name=path.name, size=size)
        if not _PORTABLE_NAME.fullmatch(job.name):
            self._console.warning(
                f"Asset name {job.name!r} has characters GitHub may rename on upload; "
                "the uploaded asset may not be found under this name."
            )

        handlers: dict[ReconcileStep, StepHandler[ReconcileSession, PublishError]] = {
            ReconcileStep.CHECKING: lambda s: self._check(job, s),
            ReconcileStep.DELETING: lambda s: self._delete(job, s),
            ReconcileStep.BACKOFF: lambda s: self._backoff(job, s),
            ReconcileStep.UPLOADING: lambda s: self._upload(job, s),
            ReconcileStep.SUCCESS: _finish,
            ReconcileStep.FATAL: _fail,
        }

        result = run_state_machine(
            initial_state=ReconcileSession(),
            get_step=lambda s: s.step,
            handlers=handlers,
            on_transition=self._on_transition,
        )
        if isinstance(result, Err):
            return result

        final = result.value
        return Ok(
            ReconcileOutcome(
                path=path,
                name=job.name,
                size=size,
                uploads=final.uploads,
                deletes=final.deletes,
            )
        )

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _gate(self, job: _FileJob, session: ReconcileSession) -> ReconcileSession:
        limit = self._policy.limit
        if session.attempt >= limit:
            last = session.last_error
            return replace(
                session,
                step=ReconcileStep.FATAL,
                error=PublishError(
                    kind="retry_limit",
                    message=f"Retry limit of {limit} reached for {job.name}.",
                    hint=str(last) if last is not None else None,
                    status=last.status if last is not None else 0,
                    body=last.body if last is not None else b"",
                ),
            )
        if session.attempt > 0:
            return replace(session, step=ReconcileStep.BACKOFF)
        return replace(session, step=ReconcileStep.UPLOADING)

    def _check(
        self, job: _FileJob, session: ReconcileSession
    ) -> Result[StepOutcome[ReconcileSession], PublishError]:
        found = find_asset(self._api, self._tag, job.name, release_id=self._release_id)
        if isinstance(found, Err):
            self._console.warning(f"Could not list assets of {self._tag}: {found.error}")
            return Ok(advance(self._gate(job, replace(session, asset=None))))

        asset = found.value
        if asset is None:
            return Ok(advance(self._gate(job, replace(session, asset=None))))

        if asset.size == job.size:
            if session.uploads == 0:
                self._console.success(f"{job.name} already uploaded ({job.size} bytes)")
            else:
                self._console.success(f"Uploaded {job.name} ({job.size} bytes)")
            return Ok(advance(replace(session, step=ReconcileStep.SUCCESS, asset=asset)))

        self._console.warning(
            f"Asset {job.name} has {asset.size} bytes, expected {job.size}. Deleting it."
        )
        return Ok(advance(replace(session, step=ReconcileStep.DELETING, asset=asset)))

    def _delete(
        self, job: _FileJob, session: ReconcileSession
    ) -> Result[StepOutcome[ReconcileSession], PublishError]:
        deletes = session.deletes
        if session.asset is not None:
            result = self._api.delete_asset(session.asset.id)
            if isinstance(result, Err):
                self._console.warning(f"Failed to delete asset. Ignoring error: {result.error}")
            else:
                self._console.info(f"Deleted {job.name}")
                deletes += 1
        return Ok(advance(self._gate(job, replace(session, asset=None, deletes=deletes))))

    def _backoff(
        self, job: _FileJob, session: ReconcileSession
    ) -> Result[StepOutcome[ReconcileSession], PublishError]:
        delay = self._policy.delay_before(session.attempt)
        self._console.info(f"Retrying {job.name} in {delay:g}s")
        self._sleep(delay)
        return Ok(advance(replace(session, step=ReconcileStep.UPLOADING)))

    def _upload(
        self, job: _FileJob, session: ReconcileSession
    ) -> Result[StepOutcome[ReconcileSession], PublishError]:
        self._console.print(
            f"Uploading {job.name} (attempt {session.attempt + 1}/{self._policy.limit})..."
        )
        try:
            with job.path.open("rb") as stream:
                result = self._api.upload_asset(self._upload_base, job.name, stream, job.size)
        except OSError as e:
            return Err(
                PublishError(
                    kind="file_unreadable",
                    message=f"cannot read {job.path}: {e.strerror or e}",
                )
            )

        last_error = session.last_error
        if isinstance(result, Err):
            last_error = result.error
            self._console.warning(f"Failed to upload asset {job.name}: {result.error}")

        return Ok(
            advance(
                replace(
                    session,
                    step=ReconcileStep.CHECKING,
                    attempt=session.attempt + 1,
                    uploads=session.uploads + 1,
                    last_error=last_error,
                )
            )
        )


def _finish(session: ReconcileSession) -> Result[StepOutcome[ReconcileSession], PublishError]:
    return Ok(FINISH)


def _fail(session: ReconcileSession) -> Result[StepOutcome[ReconcileSession], PublishError]:
    assert session.error is not None
    return Err(session.error)


def reconcile_file(
    api: ReleasesApi,
    upload_base: str,
    path: Path,
    tag: str,
    policy: RetryPolicy,
    console: ConsoleProtocol,
    sleep: Callable[[float], None] = time.sleep,
    *,
    release_id: int | None = None,
) -> Result[ReconcileOutcome, PublishError]:
    """Reconcile a single file against the release tagged ``tag``.

    Pass ``release_id`` when the release is a draft.
    """
    reconciler = FileReconciler(
        api=api,
        upload_base=upload_base,
        tag=tag,
        policy=policy,
        console=console,
        sleep=sleep,
        release_id=release_id,
    )
    return reconciler.reconcile(path)
