"""In-memory GitHub Releases API for tests.

``FakeGitHub`` implements the Transport protocol and answers the five
release endpoints the publisher uses, keeping releases and assets in
memory. Failures can be injected per operation to exercise retry paths.

Usage:
    gh = FakeGitHub()
    gh.seed_release("v1.0.0", assets={"app.zip": 10})
    publisher = Publisher(config=config, transport=gh, console=MockConsole())
"""

from __future__ import annotations

import json
from collections import deque
from dataclasses import dataclass, field
from urllib.parse import parse_qs, unquote, urlsplit

from ghr.core.result import Err, Ok, Result
from ghr.transport.http import HttpError, HttpResponse, RequestBody

__all__ = ["FakeGitHub", "FakeAsset", "FakeRelease", "UploadFailure"]

ALREADY_EXISTS_BODY = json.dumps(
    {
        "message": "Validation Failed",
        "errors": [{"resource": "Release", "code": "already_exists", "field": "tag_name"}],
    }
).encode("utf-8")


@dataclass
class FakeAsset:
    id: int
    name: str
    size: int
    state: str = "uploaded"

    def to_json(self) -> dict[str, object]:
        return {"id": self.id, "name": self.name, "size": self.size, "state": self.state}


@dataclass
class FakeRelease:
    id: int
    tag: str
    target: str = ""
    body: str = ""
    draft: bool = False
    prerelease: bool = False
    assets: list[FakeAsset] = field(default_factory=lambda: [])


@dataclass(frozen=True, slots=True)
class UploadFailure:
    """How one upload call should fail.

    Attributes:
        status: Status returned to the caller (0 for a network error)
        stored_size: When set, an asset of this size is left on the release
            (a truncated upload); otherwise nothing is stored
    """

    status: int = 502
    stored_size: int | None = None


@dataclass(frozen=True, slots=True)
class FakeCall:
    method: str
    url: str


class FakeGitHub:
    """Stateful fake of the GitHub Releases API for one repository."""

    def __init__(
        self,
        *,
        repo_api_url: str = "https://api.github.com/repos/octo/demo",
        upload_root: str = "https://uploads.github.com/repos/octo/demo",
    ) -> None:
        self.repo_api_url = repo_api_url.rstrip("/")
        self.upload_root = upload_root.rstrip("/")
        self.releases: dict[str, FakeRelease] = {}
        self.calls: list[FakeCall] = []

        self.create_error: HttpError | None = None
        self.upload_failures: deque[UploadFailure] = deque()
        self.failing_deletes = 0
        self.failing_lookups = 0

        self._next_id = 1

    # -------------------------------------------------------------------------
    # Test helpers
    # -------------------------------------------------------------------------

    def _new_id(self) -> int:
        value = self._next_id
        self._next_id += 1
        return value

    def seed_release(
        self, tag: str, *, assets: dict[str, int] | None = None, draft: bool = False
    ) -> FakeRelease:
        release = FakeRelease(id=self._new_id(), tag=tag, draft=draft)
        for name, size in (assets or {}).items():
            release.assets.append(FakeAsset(id=self._new_id(), name=name, size=size))
        self.releases[tag] = release
        return release

    def asset_sizes(self, tag: str) -> dict[str, int]:
        return {a.name: a.size for a in self.releases[tag].assets}

    def fail_uploads(self, *failures: UploadFailure) -> None:
        self.upload_failures.extend(failures)

    def count(self, method: str, fragment: str = "") -> int:
        return sum(1 for c in self.calls if c.method == method and fragment in c.url)

    @property
    def uploads(self) -> int:
        return sum(
            1 for c in self.calls if c.method == "POST" and c.url.startswith(self.upload_root)
        )

    @property
    def deletes(self) -> int:
        return self.count("DELETE")

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

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
        method = method.upper()
        self.calls.append(FakeCall(method, url))

        raw = body if body is None or isinstance(body, bytes) else body.read()

        if method == "POST" and url.startswith(self.upload_root):
            return self._upload(url, raw or b"", length)

        if not url.startswith(self.repo_api_url):
            return Err(HttpError(url=url, status=404, message="Not Found", body=b""))
        path = url[len(self.repo_api_url) :]

        if method == "POST" and path == "/releases":
            return self._create(url, raw or b"")
        if method == "GET" and path.startswith("/releases/tags/"):
            return self._get_by_tag(url, unquote(path[len("/releases/tags/") :]))
        if method == "GET" and path.removeprefix("/releases/").isdigit():
            return self._get_by_id(url, int(path.removeprefix("/releases/")))
        if method == "DELETE" and path.startswith("/releases/assets/"):
            return self._delete(url, int(path[len("/releases/assets/") :]))

        return Err(HttpError(url=url, status=404, message="Not Found", body=b""))

    def _release_json(self, release: FakeRelease) -> bytes:
        return json.dumps(
            {
                "id": release.id,
                "tag_name": release.tag,
                "name": release.tag,
                "target_commitish": release.target,
                "body": release.body,
                "draft": release.draft,
                "prerelease": release.prerelease,
                "upload_url": f"{self.upload_root}/releases/{release.id}/assets{{?name,label}}",
                "assets": [a.to_json() for a in release.assets],
            }
        ).encode("utf-8")

    def _create(self, url: str, raw: bytes) -> Result[HttpResponse, HttpError]:
        if self.create_error is not None:
            return Err(self.create_error)

        payload = json.loads(raw.decode("utf-8"))
        tag = payload["tag_name"]
        if tag in self.releases:
            return Err(
                HttpError(
                    url=url,
                    status=422,
                    message="Unprocessable Entity",
                    body=ALREADY_EXISTS_BODY,
                )
            )

        release = FakeRelease(
            id=self._new_id(),
            tag=tag,
            target=payload.get("target_commitish", ""),
            body=payload.get("body", ""),
            draft=payload.get("draft", False),
            prerelease=payload.get("prerelease", False),
        )
        self.releases[tag] = release
        return Ok(HttpResponse(status=201, body=self._release_json(release)))

    def _lookup_failure(self, url: str) -> HttpError | None:
        if self.failing_lookups > 0:
            self.failing_lookups -= 1
            return HttpError(url=url, status=503, message="Service Unavailable", body=b"")
        return None

    def _get_by_tag(self, url: str, tag: str) -> Result[HttpResponse, HttpError]:
        failure = self._lookup_failure(url)
        if failure is not None:
            return Err(failure)

        # Drafts are not served by tag.
        release = self.releases.get(tag)
        if release is None or release.draft:
            return Err(
                HttpError(url=url, status=404, message="Not Found", body=b'{"message":"Not Found"}')
            )
        return Ok(HttpResponse(status=200, body=self._release_json(release)))

    def _get_by_id(self, url: str, release_id: int) -> Result[HttpResponse, HttpError]:
        failure = self._lookup_failure(url)
        if failure is not None:
            return Err(failure)

        release = next((r for r in self.releases.values() if r.id == release_id), None)
        if release is None:
            return Err(
                HttpError(url=url, status=404, message="Not Found", body=b'{"message":"Not Found"}')
            )
        return Ok(HttpResponse(status=200, body=self._release_json(release)))

    def _delete(self, url: str, asset_id: int) -> Result[HttpResponse, HttpError]:
        if self.failing_deletes > 0:
            self.failing_deletes -= 1
            return Err(HttpError(url=url, status=500, message="Internal Server Error", body=b""))

        for release in self.releases.values():
            for asset in release.assets:
                if asset.id == asset_id:
                    release.assets.remove(asset)
                    return Ok(HttpResponse(status=204))
        return Err(HttpError(url=url, status=404, message="Not Found", body=b""))

    def _upload(self, url: str, raw: bytes, length: int) -> Result[HttpResponse, HttpError]:
        parts = urlsplit(url)
        name = parse_qs(parts.query).get("name", [""])[0]
        release_id = int(parts.path.rstrip("/").split("/")[-2])
        release = next((r for r in self.releases.values() if r.id == release_id), None)
        if release is None:
            return Err(HttpError(url=url, status=404, message="Not Found", body=b""))

        if any(a.name == name for a in release.assets):
            return Err(
                HttpError(
                    url=url,
                    status=422,
                    message="Unprocessable Entity",
                    body=b'{"errors":[{"resource":"ReleaseAsset","code":"already_exists"}]}',
                )
            )

        if self.upload_failures:
            failure = self.upload_failures.popleft()
            if failure.stored_size is not None:
                release.assets.append(
                    FakeAsset(
                        id=self._new_id(), name=name, size=failure.stored_size, state="starter"
                    )
                )
            if failure.status == 0:
                return Err(HttpError(url=url, status=0, message="Connection reset by peer"))
            return Err(
                HttpError(url=url, status=failure.status, message="Upload failed", body=b"{}")
            )

        size = length if length else len(raw)
        asset = FakeAsset(id=self._new_id(), name=name, size=size)
        release.assets.append(asset)
        return Ok(HttpResponse(status=201, body=json.dumps(asset.to_json()).encode("utf-8")))
