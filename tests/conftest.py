"""Root pytest configuration for asset-cdn tests."""
import os

import pytest
from fastapi.testclient import TestClient

from asset_cdn.api import create_app
from asset_cdn.service import AssetService
from asset_cdn.settings import Settings

from .fakes import FakeObjectStore, FakeUrlFetcher, InMemoryMetadataStore

BASE_URL = "https://cdn.example.com"


# Keep tests independent of whatever the developer's shell exports
@pytest.fixture(autouse=True)
def test_env(monkeypatch, tmp_path):
    """Point every store at a per-test directory and clear Azure credentials."""
    for key in list(os.environ):
        if key.startswith("ASSET_CDN_") or key.startswith("AZURE_STORAGE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ASSET_CDN_PUBLIC_BASE_URL", BASE_URL)
    monkeypatch.setenv("ASSET_CDN_METADATA_DIR", str(tmp_path / "metadata"))
    monkeypatch.setenv("ASSET_CDN_OBJECT_ROOT", str(tmp_path / "objects"))


# Standardized test fixtures
@pytest.fixture
def settings():
    """Standard test settings."""
    return Settings(public_base_url=BASE_URL)


@pytest.fixture
def metadata():
    return InMemoryMetadataStore()


@pytest.fixture
def objects():
    return FakeObjectStore()


@pytest.fixture
def fetcher():
    return FakeUrlFetcher()


@pytest.fixture
def service(settings, metadata, objects, fetcher):
    """Asset service wired to in-memory fakes."""
    return AssetService(metadata=metadata, objects=objects, fetcher=fetcher, settings=settings)


@pytest.fixture
def client(service):
    """HTTP client for an app serving the fake-backed service."""
    with TestClient(create_app(service=service)) as test_client:
        yield test_client


@pytest.fixture
def variant_body():
    """Registration body for an image with medium and original variants."""
    return {
        "is_image": True,
        "content_type": "image/jpeg",
        "original_width": 4000,
        "original_height": 3000,
        "variants": {
            "medium": {
                "storage_key": "img/abc-medium.jpg",
                "width": 1288,
                "height": 966,
                "size_bytes": 12,
            },
            "original": {
                "url": "https://origin.example.com/abc.jpg",
                "width": 4000,
                "height": 3000,
                "size_bytes": 16,
            },
        },
    }
