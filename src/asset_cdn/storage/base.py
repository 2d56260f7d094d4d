"""
Storage interfaces for the asset CDN.

These protocols define the boundary between the retrieval service and the
stores it reads from, enabling clean dependency injection and testing with
fakes.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ..asset_types import ObjectStream

__all__ = ["MetadataStore", "ObjectStore", "UrlFetcher", "CHUNK_SIZE"]

CHUNK_SIZE = 1024 * 1024  # 1 MiB


@runtime_checkable
class MetadataStore(Protocol):
    """
    Key/value store mapping asset ids to serialized asset records.

    No transactions, no versioning, no conditional writes: concurrent puts for
    the same id are last-write-wins.
    """

    def get(self, asset_id: str) -> Optional[str]:
        """
        Fetch the serialized record for an asset.

        Args:
            asset_id: Opaque asset identifier

        Returns:
            The stored JSON document, or None if the id is unknown
        """
        ...

    def put(self, asset_id: str, document: str) -> None:
        """
        Store (or replace) the serialized record for an asset.

        Args:
            asset_id: Opaque asset identifier
            document: JSON document to store

        Raises:
            OSError: If the write fails
        """
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """Blob store addressed by internal key."""

    def get_by_key(self, key: str) -> Optional[ObjectStream]:
        """
        Open a streaming read of the object stored under ``key``.

        Content is not read until the returned stream is iterated.

        Args:
            key: Internal object key

        Returns:
            ObjectStream with the store's content type and size when known,
            or None if no such object exists

        Raises:
            OSError: For I/O errors other than absence
        """
        ...


@runtime_checkable
class UrlFetcher(Protocol):
    """Fetches objects from arbitrary HTTP origins."""

    def fetch(self, url: str) -> ObjectStream:
        """
        Open a streaming GET of ``url``.

        Args:
            url: Absolute http(s) URL

        Returns:
            ObjectStream with the origin's Content-Type and Content-Length

        Raises:
            UpstreamUnavailable: If the origin answers with a non-success
                status or cannot be reached
        """
        ...
