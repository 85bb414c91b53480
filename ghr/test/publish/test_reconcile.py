from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ghr.core.config import RetryPolicy
from ghr.core.result import Err, Ok
from ghr.github.api import ReleasesApi
from ghr.github.fake import FakeGitHub, UploadFailure
from ghr.output.console import MockConsole
from ghr.publish.reconcile import (
    FileReconciler,
    ReconcileSession,
    ReconcileStep,
    reconcile_file,
)

CONTENT = b"release archive bytes"


@dataclass
class _Harness:
    gh: FakeGitHub
    reconciler: FileReconciler
    console: MockConsole
    path: Path
    sleeps: list[float] = field(default_factory=lambda: [])
    steps: list[ReconcileStep] = field(default_factory=lambda: [])


def _harness(
    tmp_path: Path,
    *,
    assets: dict[str, int] | None = None,
    limit: int = 5,
    content: bytes = CONTENT,
    draft: bool = False,
) -> _Harness:
    gh = FakeGitHub()
    release = gh.seed_release("v1.0.0", assets=assets, draft=draft)
    path = tmp_path / "app.zip"
    path.write_bytes(content)
    console = MockConsole()
    sleeps: list[float] = []
    steps: list[ReconcileStep] = []

    def record(session: ReconcileSession) -> None:
        steps.append(session.step)

    reconciler = FileReconciler(
        api=ReleasesApi(gh, gh.repo_api_url),
        upload_base=f"{gh.upload_root}/releases/{release.id}/assets",
        tag="v1.0.0",
        policy=RetryPolicy(limit=limit, base_delay=1.0),
        console=console,
        sleep=sleeps.append,
        on_transition=record,
        release_id=release.id if draft else None,
    )
    return _Harness(gh, reconciler, console, path, sleeps, steps)


def _methods(gh: FakeGitHub) -> list[str]:
    out: list[str] = []
    for call in gh.calls:
        if call.method == "POST" and call.url.startswith(gh.upload_root):
            out.append("UPLOAD")
        else:
            out.append(call.method)
    return out


def test_missing_asset_is_uploaded_once(tmp_path: Path) -> None:
    h = _harness(tmp_path)

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Ok)
    assert result.value.uploads == 1
    assert result.value.deletes == 0
    assert result.value.already_current is False
    assert h.gh.asset_sizes("v1.0.0") == {"app.zip": len(CONTENT)}
    assert _methods(h.gh) == ["GET", "UPLOAD", "GET"]
    assert h.sleeps == []
    assert h.steps == [ReconcileStep.UPLOADING, ReconcileStep.CHECKING, ReconcileStep.SUCCESS]


def test_correct_asset_is_left_alone(tmp_path: Path) -> None:
    h = _harness(tmp_path, assets={"app.zip": len(CONTENT)})

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Ok)
    assert result.value.already_current is True
    assert h.gh.uploads == 0
    assert h.gh.deletes == 0
    assert _methods(h.gh) == ["GET"]
    assert h.console.find("already uploaded")


def test_wrong_size_is_deleted_once_before_upload(tmp_path: Path) -> None:
    h = _harness(tmp_path, assets={"app.zip": 3})

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Ok)
    assert result.value.deletes == 1
    assert result.value.uploads == 1
    assert _methods(h.gh) == ["GET", "DELETE", "UPLOAD", "GET"]
    assert h.gh.asset_sizes("v1.0.0") == {"app.zip": len(CONTENT)}
    assert h.steps[:3] == [
        ReconcileStep.DELETING,
        ReconcileStep.UPLOADING,
        ReconcileStep.CHECKING,
    ]


def test_retry_limit_bounds_upload_attempts(tmp_path: Path) -> None:
    h = _harness(tmp_path, limit=5)
    h.gh.fail_uploads(*[UploadFailure(status=502)] * 10)

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Err)
    assert result.error.kind == "retry_limit"
    assert "Retry limit of 5 reached" in result.error.message
    assert result.error.status == 502
    assert h.gh.uploads == 5
    assert h.steps[-1] == ReconcileStep.FATAL
    # Nothing is uploaded after the fatal verdict.
    assert _methods(h.gh)[-1] == "GET"


def test_backoff_doubles_before_each_retry(tmp_path: Path) -> None:
    h = _harness(tmp_path, limit=5)
    h.gh.fail_uploads(*[UploadFailure(status=500)] * 5)

    h.reconciler.reconcile(h.path)

    assert h.sleeps == [1.0, 2.0, 4.0, 8.0]
    for previous, current in zip(h.sleeps, h.sleeps[1:]):
        assert current == 2 * previous


def test_backoff_happens_before_the_upload(tmp_path: Path) -> None:
    h = _harness(tmp_path, limit=2)
    h.gh.fail_uploads(UploadFailure(status=503), UploadFailure(status=503))

    h.reconciler.reconcile(h.path)

    assert h.steps == [
        ReconcileStep.UPLOADING,
        ReconcileStep.CHECKING,
        ReconcileStep.BACKOFF,
        ReconcileStep.UPLOADING,
        ReconcileStep.CHECKING,
        ReconcileStep.FATAL,
    ]


def test_wrong_size_after_last_upload_is_deleted_then_fatal(tmp_path: Path) -> None:
    h = _harness(tmp_path, limit=1)
    h.gh.fail_uploads(UploadFailure(status=502, stored_size=3))

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Err)
    assert result.error.kind == "retry_limit"
    assert result.error.status == 502
    assert _methods(h.gh) == ["GET", "UPLOAD", "GET", "DELETE"]
    assert h.steps == [
        ReconcileStep.UPLOADING,
        ReconcileStep.CHECKING,
        ReconcileStep.DELETING,
        ReconcileStep.FATAL,
    ]
    assert h.gh.asset_sizes("v1.0.0") == {}
    assert h.sleeps == []


def test_truncated_upload_is_replaced(tmp_path: Path) -> None:
    h = _harness(tmp_path)
    h.gh.fail_uploads(UploadFailure(status=502, stored_size=4))

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Ok)
    assert result.value.uploads == 2
    assert result.value.deletes == 1
    assert _methods(h.gh) == ["GET", "UPLOAD", "GET", "DELETE", "UPLOAD", "GET"]
    assert h.sleeps == [1.0]
    assert h.gh.asset_sizes("v1.0.0") == {"app.zip": len(CONTENT)}


def test_client_error_upload_still_reverifies(tmp_path: Path) -> None:
    h = _harness(tmp_path)
    h.gh.fail_uploads(UploadFailure(status=400))

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Ok)
    assert result.value.uploads == 2
    assert h.console.find("Failed to upload asset app.zip")


def test_failed_call_that_actually_landed_counts_as_success(tmp_path: Path) -> None:
    h = _harness(tmp_path)
    h.gh.fail_uploads(UploadFailure(status=0, stored_size=len(CONTENT)))

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Ok)
    assert result.value.uploads == 1
    assert result.value.deletes == 0
    assert h.sleeps == []


def test_delete_failure_is_ignored(tmp_path: Path) -> None:
    h = _harness(tmp_path, assets={"app.zip": 1})
    h.gh.failing_deletes = 1

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Ok)
    assert h.console.find("Failed to delete asset. Ignoring error")
    # The stale asset made the first upload bounce; the second pass cleaned it up.
    assert _methods(h.gh) == ["GET", "DELETE", "UPLOAD", "GET", "DELETE", "UPLOAD", "GET"]
    assert result.value.deletes == 1
    assert h.gh.asset_sizes("v1.0.0") == {"app.zip": len(CONTENT)}


def test_lookup_failure_proceeds_to_upload(tmp_path: Path) -> None:
    h = _harness(tmp_path)
    h.gh.failing_lookups = 1

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Ok)
    assert h.console.find("Could not list assets")
    assert h.gh.uploads == 1


def test_empty_file(tmp_path: Path) -> None:
    h = _harness(tmp_path, content=b"")

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Ok)
    assert h.gh.asset_sizes("v1.0.0") == {"app.zip": 0}


def test_missing_local_file_is_fatal(tmp_path: Path) -> None:
    h = _harness(tmp_path)

    result = h.reconciler.reconcile(tmp_path / "nope.zip")

    assert isinstance(result, Err)
    assert result.error.kind == "file_unreadable"
    assert h.gh.calls == []


def test_directory_is_fatal(tmp_path: Path) -> None:
    h = _harness(tmp_path)
    (tmp_path / "dir").mkdir()

    result = h.reconciler.reconcile(tmp_path / "dir")

    assert isinstance(result, Err)
    assert result.error.kind == "file_unreadable"


def test_reconcile_file_function(tmp_path: Path) -> None:
    gh = FakeGitHub()
    release = gh.seed_release("v2")
    path = tmp_path / "tool.tar.gz"
    path.write_bytes(b"12345678")

    result = reconcile_file(
        ReleasesApi(gh, gh.repo_api_url),
        f"{gh.upload_root}/releases/{release.id}/assets",
        path,
        "v2",
        RetryPolicy(),
        MockConsole(),
        sleep=lambda _: None,
    )

    assert isinstance(result, Ok)
    assert result.value.name == "tool.tar.gz"
    assert result.value.size == 8
    assert gh.asset_sizes("v2") == {"tool.tar.gz": 8}


def test_name_github_would_rename_is_warned(tmp_path: Path) -> None:
    h = _harness(tmp_path)
    spaced = tmp_path / "my app.zip"
    spaced.write_bytes(CONTENT)

    h.reconciler.reconcile(h.path)
    assert not h.console.find("may rename")

    h.reconciler.reconcile(spaced)
    assert h.console.find("'my app.zip' has characters GitHub may rename")


def test_draft_release_is_checked_by_id(tmp_path: Path) -> None:
    h = _harness(tmp_path, draft=True)

    result = h.reconciler.reconcile(h.path)

    assert isinstance(result, Ok)
    assert result.value.uploads == 1
    assert h.gh.count("GET", "/releases/tags/") == 0
    assert h.gh.asset_sizes("v1.0.0") == {"app.zip": len(CONTENT)}
