"""
Variant selection for image assets.

Implements the two decisions the CDN makes about variants: which variant a
newly registered image serves by default, and which registered variant
satisfies a request when the exact one is missing.
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from .asset_types import (
    VARIANT_SIZES,
    AssetRecord,
    Resolution,
    ScalarAsset,
    VariantName,
    VariantRecord,
)
from .errors import InvalidAssetRequest, VariantNotFound

__all__ = [
    "FALLBACK_CHAINS",
    "parse_variant_token",
    "compute_default_variant",
    "resolve_asset",
]

logger = logging.getLogger(__name__)

THUMB, MEDIUM, LARGE, ORIGINAL = VariantName

# Candidates tried, in order, when a variant is requested. The original is
# authoritative and has no substitute.
FALLBACK_CHAINS: Mapping[VariantName, Sequence[VariantName]] = {
    THUMB: (THUMB, MEDIUM, ORIGINAL),
    MEDIUM: (MEDIUM, ORIGINAL),
    LARGE: (LARGE, MEDIUM, ORIGINAL),
    ORIGINAL: (ORIGINAL,),
}


def parse_variant_token(token: Optional[str]) -> Optional[VariantName]:
    """
    Interpret a path segment as a variant name.

    Anything that is not exactly a recognized name (a vanity filename such as
    ``photo.jpg``, an empty segment) yields None.
    """
    if not token:
        return None
    try:
        return VariantName(token)
    except ValueError:
        return None


def compute_default_variant(
    variants: Mapping[VariantName, VariantRecord],
    original_width: Optional[int] = None,
) -> VariantName:
    """
    Pick the variant served when a request names none.

    Priority:
    1. medium
    2. original, when its width is known and no larger than the medium bound
    3. large
    4. original
    5. thumb

    An unknown ``original_width`` skips rule 2 rather than assuming a size.

    Args:
        variants: Registered variants (at least one)
        original_width: Pixel width of the source image, if known

    Returns:
        A variant name present in ``variants`` (``original`` if the mapping
        is empty)
    """
    if MEDIUM in variants:
        return MEDIUM
    if ORIGINAL in variants and original_width and original_width <= VARIANT_SIZES[MEDIUM]:
        return ORIGINAL
    for name in (LARGE, ORIGINAL, THUMB):
        if name in variants:
            return name
    return ORIGINAL


def resolve_asset(
    record: AssetRecord,
    selector: Optional[str] = None,
    *,
    asset_id: Optional[str] = None,
) -> Resolution:
    """
    Decide which stored object answers a request.

    Args:
        record: The asset's metadata
        selector: Requested variant token; None or an unrecognized token
            means "serve the default"
        asset_id: Used only to annotate errors and log lines

    Returns:
        Resolution naming the location to fetch and, for variant-bearing
        assets, the requested and actually served variant

    Raises:
        InvalidAssetRequest: If a variant is requested from a scalar asset
        VariantNotFound: If nothing in the fallback chain is registered
    """
    requested = parse_variant_token(selector)

    if isinstance(record, ScalarAsset):
        if requested is not None:
            raise InvalidAssetRequest(
                "Variants not available for this asset type", asset_id=asset_id
            )
        return Resolution(storage_mode=record.storage_mode, location=record.primary_location)

    target = requested or record.default_variant
    for candidate in FALLBACK_CHAINS[target]:
        variant = record.variants.get(candidate)
        if variant is None:
            continue
        if candidate != target:
            logger.info(f"Variant fallback for {asset_id}: requested {target.value}, serving {candidate.value}")
        return Resolution(
            storage_mode=variant.storage_mode,
            location=variant.location,
            variant=variant,
            requested=target,
            actual=candidate,
        )

    raise VariantNotFound(
        f"No suitable variant found for '{target.value}'",
        requested=target.value,
        asset_id=asset_id,
    )
