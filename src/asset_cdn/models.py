"""
Wire models for asset registration and persisted metadata.

These Pydantic models describe JSON as it crosses a boundary: the
registration request body, the record persisted in the metadata store, and
the registration response. Domain logic works on the dataclasses in
``asset_types`` instead; this module converts between the two.
"""
from __future__ import annotations

import json
from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt

from .asset_types import (
    AssetRecord,
    ScalarAsset,
    StorageMode,
    VariantAsset,
    VariantName,
    VariantRecord,
)
from .errors import AssetIntegrityError

__all__ = [
    "VariantPayload",
    "RegistrationRequest",
    "StoredVariant",
    "StoredAsset",
    "RegistrationResult",
    "HealthStatus",
    "dump_record",
    "load_record",
]


class VariantPayload(BaseModel):
    """One entry of the ``variants`` mapping in a registration body."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: Optional[str] = Field(default=None, description="External URL of the variant")
    storage_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("storage_key", "r2_key"),
        description="Internal object store key of the variant",
    )
    width: Optional[StrictInt] = Field(default=None, description="Width in pixels")
    height: Optional[StrictInt] = Field(default=None, description="Height in pixels")
    size_bytes: Optional[StrictInt] = Field(default=None, description="Object size in bytes")
    content_type: Optional[str] = Field(default=None, description="Overrides the asset content type")


class RegistrationRequest(BaseModel):
    """
    Registration body as sent by clients.

    Every field is optional here: the structural rules (exactly one storage
    location, complete variants, ...) are enforced by
    :func:`asset_cdn.validation.validate_registration` so that failures can
    name the offending field or variant.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: Optional[str] = None
    storage_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("storage_key", "r2_key")
    )
    content_type: Optional[str] = None
    size_bytes: Optional[StrictInt] = None
    is_image: Optional[bool] = None
    original_width: Optional[StrictInt] = None
    original_height: Optional[StrictInt] = None
    variants: Optional[Dict[str, VariantPayload]] = None
    default_variant: Optional[str] = None
    created_at: Optional[str] = None


class StoredVariant(BaseModel):
    """Persisted shape of a VariantRecord."""
    url: Optional[str] = None
    storage_key: Optional[str] = None
    width: int
    height: int
    size_bytes: int
    content_type: Optional[str] = None


class StoredAsset(BaseModel):
    """
    Persisted shape of an AssetRecord, keyed by asset id in the metadata store.

    Scalar records carry ``storage_mode`` and ``primary_location``;
    variant-bearing records carry ``variants`` and ``default_variant``.
    """
    model_config = ConfigDict(extra="ignore")

    storage_mode: Optional[StorageMode] = None
    primary_location: Optional[str] = None
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    is_image: bool = False
    original_width: Optional[int] = None
    original_height: Optional[int] = None
    variants: Optional[Dict[str, StoredVariant]] = None
    default_variant: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_record(cls, record: AssetRecord) -> StoredAsset:
        if isinstance(record, VariantAsset):
            return cls(
                is_image=True,
                content_type=record.content_type,
                size_bytes=record.size_bytes,
                original_width=record.original_width,
                original_height=record.original_height,
                variants={
                    name.value: StoredVariant(
                        url=variant.url,
                        storage_key=variant.storage_key,
                        width=variant.width,
                        height=variant.height,
                        size_bytes=variant.size_bytes,
                        content_type=variant.content_type,
                    )
                    for name, variant in record.variants.items()
                },
                default_variant=record.default_variant.value,
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
        return cls(
            storage_mode=record.storage_mode,
            primary_location=record.primary_location,
            content_type=record.content_type,
            size_bytes=record.size_bytes,
            is_image=record.is_image,
            original_width=record.original_width,
            original_height=record.original_height,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def to_record(self) -> AssetRecord:
        """
        Rebuild the domain record.

        Raises:
            AssetIntegrityError: If the stored document cannot describe either
                kind of asset (no storage location, unknown variant names,
                missing default variant)
        """
        if self.is_image and self.variants:
            return self._to_variant_asset()

        if not self.primary_location or self.storage_mode is None:
            raise AssetIntegrityError("Invalid asset metadata: missing storage configuration")
        return ScalarAsset(
            storage_mode=self.storage_mode,
            primary_location=self.primary_location,
            content_type=self.content_type,
            size_bytes=self.size_bytes,
            is_image=self.is_image,
            original_width=self.original_width,
            original_height=self.original_height,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def _to_variant_asset(self) -> VariantAsset:
        variants: dict[VariantName, VariantRecord] = {}
        for name, stored in (self.variants or {}).items():
            try:
                key = VariantName(name)
                variants[key] = VariantRecord(
                    url=stored.url,
                    storage_key=stored.storage_key,
                    width=stored.width,
                    height=stored.height,
                    size_bytes=stored.size_bytes,
                    content_type=stored.content_type,
                )
            except ValueError as e:
                raise AssetIntegrityError(f"Invalid variant storage configuration for '{name}': {e}") from e

        if not self.default_variant:
            raise AssetIntegrityError("Invalid asset metadata: variant-bearing record has no default variant")
        try:
            default = VariantName(self.default_variant)
        except ValueError as e:
            raise AssetIntegrityError(f"Invalid default variant '{self.default_variant}'") from e

        return VariantAsset(
            variants=variants,
            default_variant=default,
            content_type=self.content_type,
            size_bytes=self.size_bytes,
            original_width=self.original_width,
            original_height=self.original_height,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


def dump_record(record: AssetRecord) -> str:
    """Serialize a record to canonical JSON for the metadata store."""
    stored = StoredAsset.from_record(record)
    return json.dumps(
        stored.model_dump(mode="json", exclude_none=True),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def load_record(payload: str) -> AssetRecord:
    """
    Parse a metadata store document back into a domain record.

    Raises:
        AssetIntegrityError: If the document is not valid JSON or does not
            describe a servable asset
    """
    try:
        stored = StoredAsset.model_validate_json(payload)
    except ValueError as e:
        raise AssetIntegrityError(f"Unreadable asset metadata: {e}") from e
    return stored.to_record()


class RegistrationResult(BaseModel):
    """Response body for a successful registration."""
    success: bool = True
    asset_id: str
    cdn_url: str
    storage_mode: Optional[StorageMode] = None
    source_url: Optional[str] = None
    storage_key: Optional[str] = None
    default_variant: Optional[VariantName] = None
    default_url: Optional[str] = None
    variants: Optional[Dict[str, str]] = None


class HealthStatus(BaseModel):
    service: str
    status: str
    version: str
    features: list[str]
