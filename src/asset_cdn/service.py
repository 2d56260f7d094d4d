"""
Asset service - registration and retrieval orchestration.

Sits between the HTTP/CLI surfaces and the stores: validates and persists
registrations, and for reads loads the record, asks the variant resolver
what to serve, opens a stream from the named store and computes response
headers. Holds no per-request state; every read re-fetches metadata.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import quote

from .asset_types import (
    AssetRecord,
    ObjectStream,
    Resolution,
    StorageMode,
    VariantAsset,
    VariantName,
)
from .errors import AssetNotFound, ObjectNotFound
from .models import RegistrationResult, dump_record, load_record
from .settings import Settings
from .storage.base import MetadataStore, ObjectStore, UrlFetcher
from .validation import validate_registration
from .variants import resolve_asset

__all__ = [
    "AssetService",
    "AssetResponse",
    "CACHE_CONTROL",
    "DEFAULT_CONTENT_TYPE",
    "asset_url",
    "build_variant_urls",
    "build_asset_headers",
    "variant_token_from_path",
]

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=31536000, immutable"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def asset_url(base_url: str, asset_id: str, variant: Optional[VariantName] = None) -> str:
    """Canonical CDN URL for an asset, or for one of its variants."""
    url = f"{base_url.rstrip('/')}/asset/{quote(asset_id, safe='')}"
    if variant is not None:
        url = f"{url}/{variant.value}"
    return url


def build_variant_urls(base_url: str, asset_id: str, variants: Iterable[VariantName]) -> Dict[str, str]:
    return {name.value: asset_url(base_url, asset_id, name) for name in variants}


def variant_token_from_path(path: Optional[str]) -> Optional[str]:
    """
    First non-empty segment of the trailing path, e.g. ``medium`` for
    ``medium/photo.jpg``. Whether it names a variant is up to the resolver.
    """
    if not path:
        return None
    for part in path.split("/"):
        if part:
            return part
    return None


def build_asset_headers(
    content_type: str,
    content_length: Optional[int],
    asset_id: str,
    actual_variant: Optional[VariantName] = None,
    variant_dimensions: Optional[Tuple[int, int]] = None,
    original_dimensions: Optional[Tuple[int, int]] = None,
    requested_variant: Optional[VariantName] = None,
) -> Dict[str, str]:
    """
    Build response headers for a retrieval.

    Variant headers are only added for variant-bearing assets;
    ``X-Requested-Variant`` only when a fallback served something else.
    """
    headers = {
        "Content-Type": content_type,
        "Cache-Control": CACHE_CONTROL,
        "X-Asset-Id": asset_id,
    }
    if content_length is not None:
        headers["Content-Length"] = str(content_length)
    if actual_variant is not None:
        headers["X-Variant"] = actual_variant.value
        if requested_variant is not None and requested_variant != actual_variant:
            headers["X-Requested-Variant"] = requested_variant.value
    if variant_dimensions:
        headers["X-Variant-Dimensions"] = f"{variant_dimensions[0]}x{variant_dimensions[1]}"
    if original_dimensions:
        headers["X-Original-Dimensions"] = f"{original_dimensions[0]}x{original_dimensions[1]}"
    return headers


@dataclass
class AssetResponse:
    """A resolved retrieval: what was chosen, its byte stream and headers."""
    asset_id: str
    record: AssetRecord
    resolution: Resolution
    stream: ObjectStream
    headers: Dict[str, str]

    @property
    def media_type(self) -> str:
        return self.headers["Content-Type"]


class AssetService:
    """
    Application service for asset registration and retrieval.

    Stateless apart from its injected stores and settings, so one instance
    can serve concurrent requests. Errors from the core propagate unchanged
    for the surface layer to map.
    """

    def __init__(
        self,
        *,
        metadata: MetadataStore,
        objects: ObjectStore,
        fetcher: UrlFetcher,
        settings: Settings,
    ) -> None:
        self.metadata = metadata
        self.objects = objects
        self.fetcher = fetcher
        self.settings = settings

    # Registration

    def register(self, asset_id: str, body: Mapping[str, Any]) -> RegistrationResult:
        """
        Validate and persist an asset registration, replacing any previous
        record for the id.

        Args:
            asset_id: Opaque asset identifier
            body: Decoded JSON registration body

        Returns:
            RegistrationResult with the canonical URL and, for variant-bearing
            assets, per-variant URLs and the default's URL

        Raises:
            AssetValidationError: If the body is rejected; nothing is stored
            OSError: If the metadata store write fails
        """
        record = validate_registration(body)
        self.metadata.put(asset_id, dump_record(record))

        base = self.settings.public_base_url
        result = RegistrationResult(asset_id=asset_id, cdn_url=asset_url(base, asset_id))
        if isinstance(record, VariantAsset):
            result.default_variant = record.default_variant
            result.default_url = asset_url(base, asset_id, record.default_variant)
            result.variants = build_variant_urls(base, asset_id, record.available)
            available = ",".join(v.value for v in record.available)
            logger.info(f"Registered {asset_id} with variants {available} (default {record.default_variant.value})")
        else:
            result.storage_mode = record.storage_mode
            if record.storage_mode is StorageMode.EXTERNAL_URL:
                result.source_url = record.primary_location
            else:
                result.storage_key = record.primary_location
            logger.info(f"Registered {asset_id} ({record.storage_mode.value} storage)")
        return result

    # Retrieval

    def load(self, asset_id: str) -> AssetRecord:
        """
        Load and decode the stored record for an asset.

        Raises:
            AssetNotFound: If the id is unknown
            AssetIntegrityError: If the stored document is unusable
        """
        document = self.metadata.get(asset_id)
        if document is None:
            raise AssetNotFound("Asset not found", asset_id=asset_id)
        return load_record(document)

    def resolve(self, asset_id: str, path: Optional[str] = None) -> Tuple[AssetRecord, Resolution]:
        """Resolve what a GET of ``/asset/{asset_id}/{path}`` would serve, without opening it."""
        record = self.load(asset_id)
        resolution = resolve_asset(record, variant_token_from_path(path), asset_id=asset_id)
        return record, resolution

    def retrieve(self, asset_id: str, path: Optional[str] = None) -> AssetResponse:
        """
        Resolve and open the object answering ``/asset/{asset_id}/{path}``.

        The returned stream is not read here; the caller iterates it (which
        closes it when exhausted) or closes it explicitly.

        Raises:
            AssetNotFound: Unknown id, exhausted fallback chain, or missing object
            InvalidAssetRequest: Variant requested from a scalar asset
            UpstreamUnavailable: External origin failed
            AssetIntegrityError: Stored record unusable
        """
        record, resolution = self.resolve(asset_id, path)
        stream = self._open(asset_id, resolution)
        headers = self._headers(asset_id, record, resolution, stream)
        return AssetResponse(
            asset_id=asset_id,
            record=record,
            resolution=resolution,
            stream=stream,
            headers=headers,
        )

    def _open(self, asset_id: str, resolution: Resolution) -> ObjectStream:
        if resolution.storage_mode is StorageMode.INTERNAL_KEY:
            stream = self.objects.get_by_key(resolution.location)
            if stream is None:
                what = "Variant" if resolution.variant is not None else "Asset"
                logger.warning(f"Object {resolution.location!r} for {asset_id} missing from object store")
                raise ObjectNotFound(f"{what} not found in object storage", asset_id=asset_id)
            return stream
        return self.fetcher.fetch(resolution.location)

    def _headers(
        self,
        asset_id: str,
        record: AssetRecord,
        resolution: Resolution,
        stream: ObjectStream,
    ) -> Dict[str, str]:
        variant = resolution.variant
        if variant is None or not isinstance(record, VariantAsset):
            return build_asset_headers(
                record.content_type or stream.content_type or DEFAULT_CONTENT_TYPE,
                record.size_bytes if record.size_bytes is not None else stream.size,
                asset_id,
            )

        return build_asset_headers(
            variant.content_type or record.content_type or stream.content_type or DEFAULT_CONTENT_TYPE,
            variant.size_bytes,
            asset_id,
            actual_variant=resolution.actual,
            variant_dimensions=(variant.width, variant.height),
            original_dimensions=record.original_dimensions,
            requested_variant=resolution.requested,
        )
