"""
Filesystem-backed stores.

FileMetadataStore keeps one JSON document per asset id; LocalObjectStore
serves objects from files under a root directory. Both suit development and
single-host deployments.
"""
from __future__ import annotations

import logging
import mimetypes
import os
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from ..asset_types import ObjectStream
from ..path_safety import safe_asset_id, safe_relpath
from .base import CHUNK_SIZE, MetadataStore, ObjectStore

__all__ = ["FileMetadataStore", "LocalObjectStore"]

logger = logging.getLogger(__name__)


class FileMetadataStore(MetadataStore):
    """
    Metadata store writing ``<root>/<asset_id>.json``.

    Writes are atomic (temp file + fsync + rename), so readers see either the
    old or the new document, never a partial one. Each write uses its own temp
    file, so concurrent writers race and the last rename wins.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, asset_id: str) -> Path:
        return self.root / f"{safe_asset_id(asset_id)}.json"

    def get(self, asset_id: str) -> Optional[str]:
        try:
            path = self._path_for(asset_id)
        except ValueError:
            # An id that cannot be a file name was never stored
            return None
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def put(self, asset_id: str, document: str) -> None:
        path = self._path_for(asset_id)
        # One temp file per write; dot-prefixed names are never valid asset ids
        fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.tmp.", dir=self.root)
        temp_path = Path(temp_name)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(document)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink()
            raise
        logger.debug(f"Wrote metadata for {asset_id} to {path}")


class LocalObjectStore(ObjectStore):
    """
    Object store reading files under a root directory.

    Keys are relative POSIX paths; content type is guessed from the file
    extension.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def get_by_key(self, key: str) -> Optional[ObjectStream]:
        try:
            path = self.root / safe_relpath(key)
        except ValueError:
            logger.warning(f"Refusing unsafe object key: {key!r}")
            return None
        if not path.is_file():
            return None

        handle = open(path, "rb")
        size = os.fstat(handle.fileno()).st_size
        content_type, _ = mimetypes.guess_type(path.name)

        def chunks() -> Iterator[bytes]:
            while True:
                chunk = handle.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

        return ObjectStream(body=chunks(), content_type=content_type, size=size, on_close=handle.close)
