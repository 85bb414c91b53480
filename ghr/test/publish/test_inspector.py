from __future__ import annotations

from ghr.core.result import Err, Ok
from ghr.github.api import ReleasesApi
from ghr.github.fake import FakeGitHub
from ghr.publish.inspector import find_asset


def _api(gh: FakeGitHub) -> ReleasesApi:
    return ReleasesApi(gh, gh.repo_api_url)


def test_finds_asset_with_size() -> None:
    gh = FakeGitHub()
    gh.seed_release("v1", assets={"a.zip": 10, "b.zip": 20})

    result = find_asset(_api(gh), "v1", "b.zip")

    assert isinstance(result, Ok)
    assert result.value is not None
    assert result.value.size == 20


def test_absent_asset_is_not_an_error() -> None:
    gh = FakeGitHub()
    gh.seed_release("v1", assets={"a.zip": 10})

    assert find_asset(_api(gh), "v1", "c.zip") == Ok(None)


def test_every_lookup_fetches_the_release() -> None:
    gh = FakeGitHub()
    gh.seed_release("v1")
    api = _api(gh)

    find_asset(api, "v1", "a.zip")
    gh.releases["v1"].assets.clear()
    find_asset(api, "v1", "a.zip")

    assert gh.count("GET", "/releases/tags/v1") == 2


def test_lookup_failure_is_returned() -> None:
    gh = FakeGitHub()
    gh.seed_release("v1")
    gh.failing_lookups = 1

    result = find_asset(_api(gh), "v1", "a.zip")

    assert isinstance(result, Err)
    assert result.error.status == 503  # type: ignore[union-attr]


def test_draft_is_read_by_id() -> None:
    gh = FakeGitHub()
    release = gh.seed_release("v1", assets={"a.zip": 10}, draft=True)
    api = _api(gh)

    assert isinstance(find_asset(api, "v1", "a.zip"), Err)

    result = find_asset(api, "v1", "a.zip", release_id=release.id)

    assert isinstance(result, Ok)
    assert result.value is not None
    assert result.value.size == 10
    assert gh.count("GET", f"/releases/{release.id}") == 1
