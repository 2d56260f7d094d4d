"""
Registration validation.

Turns a raw registration body into a normalized asset record, or rejects it
as a whole. Validation is pure data-shape checking: no store or network
access happens here.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from .asset_types import (
    AssetRecord,
    ScalarAsset,
    StorageMode,
    VariantAsset,
    VariantName,
    VariantRecord,
)
from .errors import AssetValidationError
from .models import RegistrationRequest, VariantPayload
from .variants import compute_default_variant, parse_variant_token

__all__ = ["parse_registration", "validate_registration"]

_REQUIRED_VARIANT_FIELDS = ("width", "height", "size_bytes")


def parse_registration(raw: Any) -> RegistrationRequest:
    """
    Parse a decoded JSON body into a RegistrationRequest.

    Type errors (a string where a width belongs, a non-object body) are
    reported as ``malformed_body``, or as ``invalid_variant`` naming the
    variant when they occur inside the ``variants`` mapping.

    Raises:
        AssetValidationError: If the body does not have the registration shape
    """
    if not isinstance(raw, Mapping):
        raise AssetValidationError("Request body must be a JSON object", kind="malformed_body")
    try:
        return RegistrationRequest.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        loc = [str(part) for part in first.get("loc", ())]
        if len(loc) >= 2 and loc[0] == "variants":
            field = loc[2] if len(loc) > 2 else None
            raise AssetValidationError(
                f"Invalid variant '{loc[1]}': {first.get('msg')}",
                kind="invalid_variant",
                field=field,
                variant=loc[1],
            ) from e
        field = loc[0] if loc else None
        raise AssetValidationError(
            f"Invalid field '{field}': {first.get('msg')}",
            kind="malformed_body",
            field=field,
        ) from e


def _storage_of(url: Optional[str], storage_key: Optional[str]) -> tuple[StorageMode, str]:
    """Apply the exactly-one-location rule to an asset body."""
    if not url and not storage_key:
        raise AssetValidationError(
            "Either url or storage_key is required", kind="missing_location", field="url"
        )
    if url and storage_key:
        raise AssetValidationError(
            "Cannot specify both url and storage_key", kind="ambiguous_location", field="url"
        )
    if storage_key:
        return StorageMode.INTERNAL_KEY, storage_key
    return StorageMode.EXTERNAL_URL, url  # type: ignore[return-value]


def _validate_variant(name: str, payload: VariantPayload) -> VariantRecord:
    if bool(payload.url) == bool(payload.storage_key):
        raise AssetValidationError(
            f"Invalid variant '{name}': must have exactly one of url or storage_key",
            kind="invalid_variant",
            field="url",
            variant=name,
        )
    for field in _REQUIRED_VARIANT_FIELDS:
        if getattr(payload, field) is None:
            raise AssetValidationError(
                f"Invalid variant '{name}': missing {field}; "
                "width, height and size_bytes are required",
                kind="invalid_variant",
                field=field,
                variant=name,
            )
    return VariantRecord(
        url=payload.url or None,
        storage_key=payload.storage_key or None,
        width=payload.width,  # type: ignore[arg-type]
        height=payload.height,  # type: ignore[arg-type]
        size_bytes=payload.size_bytes,  # type: ignore[arg-type]
        content_type=payload.content_type,
    )


def validate_registration(
    body: Union[RegistrationRequest, Mapping[str, Any]],
    *,
    now: Optional[datetime] = None,
) -> AssetRecord:
    """
    Validate a registration body and build the record to persist.

    Rules, in order:
    1. Non-images need exactly one of ``url`` / ``storage_key``.
    2. Images with a ``variants`` mapping need at least one variant, and
       every variant needs one location plus width, height and size_bytes.
       Any failing variant rejects the whole registration.
    3. Images without ``variants`` fall back to rule 1.

    A variant-bearing record without an explicit ``default_variant`` gets the
    computed default, so the default is fixed at registration time.

    Args:
        body: Parsed request or decoded JSON mapping
        now: Registration time; defaults to the current UTC time

    Returns:
        ScalarAsset or VariantAsset ready to persist

    Raises:
        AssetValidationError: Naming the offending field or variant
    """
    request = body if isinstance(body, RegistrationRequest) else parse_registration(body)
    stamp = (now or datetime.now(timezone.utc)).isoformat()

    if not request.is_image or request.variants is None:
        mode, location = _storage_of(request.url, request.storage_key)
        return ScalarAsset(
            storage_mode=mode,
            primary_location=location,
            content_type=request.content_type,
            size_bytes=request.size_bytes,
            is_image=bool(request.is_image),
            original_width=request.original_width,
            original_height=request.original_height,
            created_at=request.created_at or stamp,
            updated_at=stamp,
        )

    if not request.variants:
        raise AssetValidationError(
            "At least one variant required when variants are supplied",
            kind="no_variants",
            field="variants",
        )

    variants: dict[VariantName, VariantRecord] = {}
    for name, payload in request.variants.items():
        key = parse_variant_token(name)
        if key is None:
            raise AssetValidationError(
                f"Unknown variant '{name}': expected one of "
                + ", ".join(v.value for v in VariantName),
                kind="unknown_variant",
                field="variants",
                variant=name,
            )
        variants[key] = _validate_variant(name, payload)

    if request.default_variant is None:
        default = compute_default_variant(variants, request.original_width)
    else:
        default = _explicit_default(request.default_variant, variants)

    return VariantAsset(
        variants=variants,
        default_variant=default,
        content_type=request.content_type,
        size_bytes=request.size_bytes,
        original_width=request.original_width,
        original_height=request.original_height,
        created_at=request.created_at or stamp,
        updated_at=stamp,
    )


def _explicit_default(token: str, variants: Mapping[VariantName, VariantRecord]) -> VariantName:
    default = parse_variant_token(token)
    if default is None:
        raise AssetValidationError(
            f"Unknown default_variant '{token}'",
            kind="invalid_default",
            field="default_variant",
        )
    if default not in variants:
        raise AssetValidationError(
            f"default_variant '{default.value}' is not among the supplied variants",
            kind="invalid_default",
            field="default_variant",
            variant=default.value,
        )
    return default
