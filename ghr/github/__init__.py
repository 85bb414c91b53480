"""GitHub Releases API models and bindings."""

from .api import ApiError, DecodeError, ReleasesApi
from .models import Asset, Release, ReleaseDescriptor

__all__ = [
    "ApiError",
    "Asset",
    "DecodeError",
    "Release",
    "ReleaseDescriptor",
    "ReleasesApi",
]
