from __future__ import annotations

import mimetypes
import os
from importlib import resources
from pathlib import PurePosixPath

_ASSET_CACHE: dict[str, bytes] = {}


def _no_cache_enabled() -> bool:
    return os.environ.get("PROMPTSHEET_VIEWER_NO_CACHE") == "1"


def _read_static(key: str) -> bytes:
    if not _no_cache_enabled() and key in _ASSET_CACHE:
        return _ASSET_CACHE[key]
    body = resources.files(__package__).joinpath("viewer_static").joinpath(key).read_bytes()
    if not _no_cache_enabled():
        _ASSET_CACHE[key] = body
    return body


def get_index_html_bytes() -> bytes:
    return _read_static("index.html")


def get_static_asset_bytes(asset_path: str) -> tuple[bytes, str]:
    """Return bytes + content-type for a packaged viewer_static asset."""

    clean = asset_path.strip().lstrip("/")
    path = PurePosixPath(clean)
    if not clean or path.is_absolute() or ".." in path.parts:
        raise ValueError("invalid asset path")

    key = str(path)
    body = _read_static(key)
    content_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    if content_type.startswith("text/"):
        content_type = f"{content_type}; charset=utf-8"
    return body, content_type
