"""
Asset CDN error classes.

Provides one exception class per caller-visible outcome so that the HTTP
layer and the CLI can map failures 1:1 without inspecting messages. No
class is ever caught and re-raised as a different kind.
"""
from __future__ import annotations

from typing import Optional


class AssetError(Exception):
    """Base class for all asset resolution errors."""
    pass


class AssetValidationError(AssetError):
    """
    Registration body is malformed or contradictory.

    Nothing is persisted when this is raised.

    Attributes:
        kind: Machine-readable reason, e.g. ``missing_location``,
            ``ambiguous_location``, ``invalid_variant``, ``unknown_variant``,
            ``no_variants``, ``invalid_default``, ``malformed_body``
        field: Offending field name, when one can be named
        variant: Offending variant name, when the failure is per-variant
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        field: Optional[str] = None,
        variant: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.field = field
        self.variant = variant


class AssetNotFound(AssetError):
    """
    Nothing can be served for the request.

    ``layer`` names which step gave up: ``metadata`` (unknown asset id),
    ``variant`` (fallback chain exhausted) or ``object`` (the store has no
    object under the recorded key).
    """
    layer = "metadata"

    def __init__(self, message: str, *, asset_id: Optional[str] = None):
        super().__init__(message)
        self.asset_id = asset_id


class VariantNotFound(AssetNotFound):
    """No variant in the fallback chain of the requested target is registered."""
    layer = "variant"

    def __init__(self, message: str, *, requested: str, asset_id: Optional[str] = None):
        super().__init__(message, asset_id=asset_id)
        self.requested = requested


class ObjectNotFound(AssetNotFound):
    """The object store has no object under the recorded key."""
    layer = "object"


class InvalidAssetRequest(AssetError):
    """A variant was requested for an asset that has no variants."""

    def __init__(self, message: str, *, asset_id: Optional[str] = None):
        super().__init__(message)
        self.asset_id = asset_id


class UpstreamUnavailable(AssetError):
    """
    An external origin did not deliver the object.

    Raised for non-success HTTP statuses and transport failures. The core
    never retries; ``status_code`` is None for transport failures.
    """

    def __init__(self, message: str, *, url: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class AssetIntegrityError(AssetError):
    """A persisted record is structurally impossible and cannot be served."""
    pass


# HTTP status per error class. Subclasses resolve through the MRO so
# VariantNotFound and ObjectNotFound share AssetNotFound's status.
STATUS_CODES = {
    "AssetValidationError": 400,
    "InvalidAssetRequest": 400,
    "AssetNotFound": 404,
    "UpstreamUnavailable": 503,
    "AssetIntegrityError": 500,
}


def status_code_for(exc: BaseException) -> int:
    """
    Map an exception to the HTTP status the caller sees.

    Args:
        exc: Exception raised while handling a request

    Returns:
        HTTP status code, 500 for anything not in the asset taxonomy
    """
    for cls in type(exc).__mro__:
        if cls.__name__ in STATUS_CODES:
            return STATUS_CODES[cls.__name__]
    return 500


def error_body(exc: AssetError) -> dict:
    """Structured JSON body for an asset error."""
    body: dict = {"error": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, AssetValidationError):
        body["kind"] = exc.kind
        if exc.field:
            body["field"] = exc.field
        if exc.variant:
            body["variant"] = exc.variant
    if isinstance(exc, AssetNotFound):
        body["layer"] = exc.layer
    if isinstance(exc, VariantNotFound):
        body["requested"] = exc.requested
    asset_id = getattr(exc, "asset_id", None)
    if asset_id:
        body["asset_id"] = asset_id
    return body


__all__ = [
    "AssetError",
    "AssetValidationError",
    "AssetNotFound",
    "VariantNotFound",
    "ObjectNotFound",
    "InvalidAssetRequest",
    "UpstreamUnavailable",
    "AssetIntegrityError",
    "STATUS_CODES",
    "status_code_for",
    "error_body",
]
