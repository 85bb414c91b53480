from __future__ import annotations

from typing import TYPE_CHECKING

from ghr.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from ghr.github.api import ApiError, ReleasesApi
    from ghr.github.models import Asset


def find_asset(
    api: ReleasesApi,
    tag: str,
    filename: str,
    *,
    release_id: int | None = None,
) -> Result[Asset | None, ApiError]:
    """Look up the asset named ``filename`` on the release tagged ``tag``.

    The release is fetched fresh on every call; assets are added and removed
    by this process between calls, so no earlier copy is authoritative.
    ``Ok(None)`` means the asset is absent, which is an expected state.

    GitHub does not serve draft releases by tag. Pass ``release_id`` for a
    draft and the release is read by id instead.
    """
    if release_id is not None:
        result = api.get_release(release_id)
    else:
        result = api.get_release_by_tag(tag)
    if isinstance(result, Err):
        return result
    return Ok(result.value.asset_named(filename))
