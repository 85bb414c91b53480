from __future__ import annotations

from dataclasses import dataclass

from ghr.core.structured import StrDict, as_str_dict, get_bool, get_int, get_list, get_str


@dataclass(frozen=True, slots=True)
class ReleaseDescriptor:
    """What to publish. The tag doubles as the release name."""

    tag: str
    target: str = ""
    body: str = ""
    draft: bool = False
    prerelease: bool = False

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "tag_name": self.tag,
            "name": self.tag,
            "body": self.body,
            "draft": self.draft,
            "prerelease": self.prerelease,
        }
        # An empty target lets GitHub default to the repository's default branch.
        if self.target:
            payload["target_commitish"] = self.target
        return payload


@dataclass(frozen=True, slots=True)
class Asset:
    id: int
    name: str
    size: int

    @classmethod
    def from_dict(cls, data: StrDict) -> Asset | None:
        asset_id = get_int(data, "id")
        name = data.get("name")
        size = get_int(data, "size")
        if asset_id is None or not isinstance(name, str) or size is None:
            return None
        return cls(id=asset_id, name=name, size=size)


@dataclass(frozen=True, slots=True)
class Release:
    """A release as reported by the API.

    ``upload_url`` is the raw template, e.g.
    ``https://uploads.github.com/repos/o/r/releases/1/assets{?name,label}``.
    """

    id: int
    tag: str
    upload_url: str
    assets: tuple[Asset, ...] = ()
    draft: bool = False

    @classmethod
    def from_dict(cls, data: StrDict) -> Release | None:
        release_id = get_int(data, "id")
        tag = get_str(data, "tag_name")
        if release_id is None or tag is None:
            return None

        assets: list[Asset] = []
        for item in get_list(data, "assets") or []:
            d = as_str_dict(item)
            if d is None:
                continue
            asset = Asset.from_dict(d)
            if asset is not None:
                assets.append(asset)

        return cls(
            id=release_id,
            tag=tag,
            upload_url=get_str(data, "upload_url") or "",
            assets=tuple(assets),
            draft=get_bool(data, "draft") or False,
        )

    def asset_named(self, name: str) -> Asset | None:
        """First asset whose name matches exactly."""
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None
