# Fake implementations for testing

from .stores import FakeObjectStore, FakeUrlFetcher, InMemoryMetadataStore

__all__ = ["FakeObjectStore", "FakeUrlFetcher", "InMemoryMetadataStore"]
