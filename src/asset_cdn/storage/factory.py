"""
Store factory with backend switching.

Builds the metadata store, object store and URL fetcher named by settings so
call sites never construct backends directly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..settings import Settings
from .base import MetadataStore, ObjectStore, UrlFetcher
from .local import FileMetadataStore, LocalObjectStore
from .url_fetch import HttpUrlFetcher

__all__ = ["Stores", "make_stores"]


@dataclass(frozen=True)
class Stores:
    """The three collaborators the asset service needs."""
    metadata: MetadataStore
    objects: ObjectStore
    fetcher: UrlFetcher


def make_stores(settings: Settings) -> Stores:
    """
    Create store implementations based on settings.

    Args:
        settings: Backend selection and credentials

    Returns:
        Stores bundle

    Examples:
        >>> stores = make_stores(Settings(metadata_dir="/tmp/meta", object_root="/tmp/objects"))
        >>> isinstance(stores.metadata, FileMetadataStore)
        True
    """
    service_client: Optional[object] = None
    if settings.uses_azure:
        from .azure_blob import make_blob_service_client
        service_client = make_blob_service_client(settings)

    if settings.metadata_backend == "azure":
        from .azure_blob import AzureBlobMetadataStore
        metadata: MetadataStore = AzureBlobMetadataStore(settings=settings, service_client=service_client)
    else:
        metadata = FileMetadataStore(settings.metadata_dir)

    if settings.object_backend == "azure":
        from .azure_blob import AzureBlobObjectStore
        objects: ObjectStore = AzureBlobObjectStore(settings=settings, service_client=service_client)
    else:
        objects = LocalObjectStore(settings.object_root)

    return Stores(metadata=metadata, objects=objects, fetcher=HttpUrlFetcher(settings=settings))
