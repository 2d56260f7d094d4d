"""Storage collaborators: metadata store, object stores and the URL fetcher."""
from .base import CHUNK_SIZE, MetadataStore, ObjectStore, UrlFetcher
from .factory import Stores, make_stores

__all__ = ["CHUNK_SIZE", "MetadataStore", "ObjectStore", "UrlFetcher", "Stores", "make_stores"]
