"""Create a release, or adopt the one that already exists for the tag.

Releases are keyed by tag and the API has no atomic create-or-get, so we
probe by creating first and fall back to a fetch only when the failure says
the release is already there. Checking first and creating second would race.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ghr.core.result import Err, Ok, Result
from ghr.github.api import DecodeError
from ghr.publish.errors import PublishError
from ghr.transport.http import HttpError

if TYPE_CHECKING:
    from ghr.github.api import ApiError, ReleasesApi
    from ghr.github.models import Release, ReleaseDescriptor
    from ghr.output.console import ConsoleProtocol

__all__ = [
    "ALREADY_EXISTS_CODE",
    "ResolvedRelease",
    "is_already_exists",
    "normalize_upload_url",
    "resolve_release",
]

# Error code GitHub puts in the 422 body when the tag already has a release.
ALREADY_EXISTS_CODE = b"already_exists"


@dataclass(frozen=True, slots=True)
class ResolvedRelease:
    release: Release
    upload_base: str
    created: bool


def is_already_exists(error: ApiError) -> bool:
    """True when a create-release failure means the release already exists.

    This is a body substring match. Keep every use of the heuristic behind
    this function.
    """
    return isinstance(error, HttpError) and ALREADY_EXISTS_CODE in error.body


def normalize_upload_url(template: str) -> str:
    """Strip the URI-template suffix from an upload URL.

    ``https://uploads.github.com/repos/o/r/releases/1/assets{?name,label}``
    becomes ``https://uploads.github.com/repos/o/r/releases/1/assets``.
    """
    return template.split("{", 1)[0]


def _fatal(error: ApiError, message: str) -> PublishError:
    match error:
        case DecodeError(message=detail, body=body):
            return PublishError(
                kind="invalid_response",
                message=f"{message}: {detail}",
                body=body,
            )
        case HttpError(status=status, body=body):
            return PublishError(
                kind="release_failed",
                message=f"{message}: {error}",
                hint=error.body_text().strip() or None,
                status=status,
                body=body,
            )


def resolve_release(
    api: ReleasesApi,
    descriptor: ReleaseDescriptor,
    console: ConsoleProtocol,
) -> Result[ResolvedRelease, PublishError]:
    """Ensure a release exists for ``descriptor.tag``.

    Returns:
        Ok with the release and its normalized upload base URL, or a fatal
        PublishError when creation failed for any reason other than the
        release already existing (or the fallback fetch failed too)
    """
    created = True
    result = api.create_release(descriptor)

    if isinstance(result, Err) and is_already_exists(result.error):
        console.print(str(result.error))
        console.info("Release already exists. Getting existing release info to attach assets.")
        created = False
        result = api.get_release_by_tag(descriptor.tag)
        if isinstance(result, Err):
            return Err(_fatal(result.error, f"failed to fetch release {descriptor.tag}"))
    elif isinstance(result, Err):
        return Err(_fatal(result.error, f"failed to create release {descriptor.tag}"))

    release = result.value
    upload_base = normalize_upload_url(release.upload_url)
    if not upload_base:
        return Err(
            PublishError(
                kind="invalid_response",
                message=f"release {release.tag} has no upload URL",
            )
        )

    if created:
        console.success(f"Created release {release.tag} (id {release.id})")
    else:
        console.success(f"Using existing release {release.tag} (id {release.id})")
    return Ok(ResolvedRelease(release=release, upload_base=upload_base, created=created))
