"""GitHub Releases API bindings.

Maps the four remote operations the publisher needs onto Transport calls:

- create release:  POST   {repo}/releases
- fetch by tag:    GET    {repo}/releases/tags/{tag}
- delete asset:    DELETE {repo}/releases/assets/{id}
- upload asset:    POST   {upload_base}?name={filename}

All methods take and return plain values; nothing is cached between calls.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO
from urllib.parse import quote

from ghr.core.result import Err, Ok, Result
from ghr.core.structured import as_str_dict
from ghr.github.models import Asset, Release, ReleaseDescriptor
from ghr.transport.http import HttpError

if TYPE_CHECKING:
    from ghr.transport.http import HttpResponse, Transport

__all__ = ["ApiError", "DecodeError", "ReleasesApi"]

JSON_CONTENT_TYPE = "application/json"
BINARY_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class DecodeError:
    """The API answered but the payload was not what we expected."""

    url: str
    message: str
    body: bytes = b""

    def __str__(self) -> str:
        return f"{self.message} ({self.url})"


type ApiError = HttpError | DecodeError


def _decode_release(url: str, response: HttpResponse) -> Result[Release, DecodeError]:
    try:
        obj: object = json.loads(response.body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(DecodeError(url=url, message=f"JSON parse error: {e}", body=response.body))

    data = as_str_dict(obj)
    if data is None:
        return Err(DecodeError(url=url, message="Expected JSON object", body=response.body))

    release = Release.from_dict(data)
    if release is None:
        return Err(DecodeError(url=url, message="Missing release id or tag_name", body=response.body))
    return Ok(release)


class ReleasesApi:
    """Release operations for one repository."""

    def __init__(
        self,
        transport: Transport,
        repo_api_url: str,
        *,
        upload_timeout: float | None = None,
    ) -> None:
        self._transport = transport
        self._base = repo_api_url.rstrip("/")
        self._upload_timeout = upload_timeout

    def release_by_tag_url(self, tag: str) -> str:
        return f"{self._base}/releases/tags/{quote(tag, safe='')}"

    def create_release(self, descriptor: ReleaseDescriptor) -> Result[Release, ApiError]:
        url = f"{self._base}/releases"
        payload = json.dumps(descriptor.to_payload()).encode("utf-8")
        result = self._transport.request("POST", url, JSON_CONTENT_TYPE, payload, len(payload))
        if isinstance(result, Err):
            return result
        return _decode_release(url, result.value)

    def get_release_by_tag(self, tag: str) -> Result[Release, ApiError]:
        url = self.release_by_tag_url(tag)
        result = self._transport.request("GET", url, JSON_CONTENT_TYPE)
        if isinstance(result, Err):
            return result
        return _decode_release(url, result.value)

    def get_release(self, release_id: int) -> Result[Release, ApiError]:
        """Fetch a release by id. Unlike the by-tag route this also serves drafts."""
        url = f"{self._base}/releases/{release_id}"
        result = self._transport.request("GET", url, JSON_CONTENT_TYPE)
        if isinstance(result, Err):
            return result
        return _decode_release(url, result.value)

    def delete_asset(self, asset_id: int) -> Result[None, HttpError]:
        url = f"{self._base}/releases/assets/{asset_id}"
        result = self._transport.request("DELETE", url, JSON_CONTENT_TYPE)
        if isinstance(result, Err):
            return result
        return Ok(None)

    def upload_asset(
        self,
        upload_base: str,
        name: str,
        stream: BinaryIO,
        size: int,
    ) -> Result[Asset | None, HttpError]:
        """Stream ``size`` bytes from ``stream`` as asset ``name``.

        The returned asset metadata is informational only; callers re-read
        the release to learn what actually landed.
        """
        url = f"{upload_base}?name={quote(name, safe='')}"
        result = self._transport.request(
            "POST",
            url,
            BINARY_CONTENT_TYPE,
            stream,
            size,
            timeout=self._upload_timeout,
        )
        if isinstance(result, Err):
            return result

        try:
            data = as_str_dict(json.loads(result.value.body.decode("utf-8")))
        except (json.JSONDecodeError, UnicodeDecodeError):
            data = None
        return Ok(Asset.from_dict(data) if data is not None else None)
