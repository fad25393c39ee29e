"""GitHub release API access."""

from .releases import (
    ReleaseAsset,
    ReleaseInfo,
    download_asset,
    download_file,
    fetch_latest_release,
    make_client,
    validate_token,
)

__all__ = [
    "ReleaseAsset",
    "ReleaseInfo",
    "download_asset",
    "download_file",
    "fetch_latest_release",
    "make_client",
    "validate_token",
]
