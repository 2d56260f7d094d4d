"""
Path safety utilities for the filesystem-backed stores.

Object keys and asset ids come straight from registration bodies and URLs;
these helpers keep them from escaping the store's root directory.
"""
from __future__ import annotations

from pathlib import PurePosixPath

__all__ = ["safe_relpath", "safe_asset_id"]


def safe_relpath(path: str) -> str:
    """
    Validate and normalize an object key used as a relative path.

    Rules:
    - No empty strings or "."
    - No absolute paths (starting with '/')
    - No parent directory references ('..' components)
    - No backslashes

    Args:
        path: Object key

    Returns:
        Normalized relative path safe for joining onto a root

    Raises:
        ValueError: If the key violates these rules

    Examples:
        >>> safe_relpath("images/2024/photo.jpg")
        'images/2024/photo.jpg'

        >>> safe_relpath("../secrets.txt")
        ValueError: unsafe path: ../secrets.txt
    """
    rel = PurePosixPath(path)
    s = str(rel)
    if not path or not s or s == ".":
        raise ValueError(f"unsafe path: {path}")
    if "\\" in s:
        raise ValueError(f"unsafe path: {path}")
    if rel.is_absolute() or ".." in rel.parts:
        raise ValueError(f"unsafe path: {path}")
    return s


def safe_asset_id(asset_id: str) -> str:
    """
    Validate an asset id for use as a single file name.

    Raises:
        ValueError: If the id is empty, contains a path separator, or is a
            dot-name
    """
    if not asset_id or asset_id in (".", "..") or asset_id.startswith("."):
        raise ValueError(f"unsafe asset id: {asset_id!r}")
    if "/" in asset_id or "\\" in asset_id or "\x00" in asset_id:
        raise ValueError(f"unsafe asset id: {asset_id!r}")
    return asset_id
