"""
Domain types for the asset resolution engine.

An asset record is one of two cases: a ScalarAsset (a single unversioned
object) or a VariantAsset (an image with pre-generated size variants). The
validator produces these, the resolver consumes them, and the wire models in
``models.py`` convert them to and from their persisted JSON shape.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Iterator, Mapping, Optional, Union

__all__ = [
    "VariantName",
    "StorageMode",
    "VariantRecord",
    "ScalarAsset",
    "VariantAsset",
    "AssetRecord",
    "Resolution",
    "ObjectStream",
    "VARIANT_SIZES",
]


class VariantName(str, Enum):
    """Recognized image variant names, smallest first."""
    THUMB = "thumb"
    MEDIUM = "medium"
    LARGE = "large"
    ORIGINAL = "original"


class StorageMode(str, Enum):
    """Addressing scheme for a stored object."""
    EXTERNAL_URL = "url"
    INTERNAL_KEY = "key"


# Upper bound on the longest edge, in pixels, for each resized variant.
VARIANT_SIZES: Mapping[VariantName, int] = {
    VariantName.THUMB: 200,
    VariantName.MEDIUM: 1288,
    VariantName.LARGE: 2400,
}


@dataclass(frozen=True)
class VariantRecord:
    """
    One stored representation of an image.

    Exactly one of ``url`` or ``storage_key`` is set; which one decides the
    addressing scheme used to fetch it.
    """
    width: int
    height: int
    size_bytes: int
    url: Optional[str] = None
    storage_key: Optional[str] = None
    content_type: Optional[str] = None

    def __post_init__(self) -> None:
        if bool(self.url) == bool(self.storage_key):
            raise ValueError("variant needs exactly one of url or storage_key")
        for name in ("width", "height", "size_bytes"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")

    @property
    def storage_mode(self) -> StorageMode:
        return StorageMode.INTERNAL_KEY if self.storage_key else StorageMode.EXTERNAL_URL

    @property
    def location(self) -> str:
        return self.storage_key or self.url  # type: ignore[return-value]


@dataclass(frozen=True)
class ScalarAsset:
    """A single unversioned object, served as-is."""
    storage_mode: StorageMode
    primary_location: str
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    is_image: bool = False
    original_width: Optional[int] = None
    original_height: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class VariantAsset:
    """
    An image with one to four stored variants.

    Invariants:
    - ``variants`` is non-empty
    - ``default_variant`` names a key of ``variants`` when written by the
      validator; records loaded from the store are not re-checked, the
      resolver reports a missing default as not-found
    """
    variants: Mapping[VariantName, VariantRecord]
    default_variant: VariantName
    content_type: Optional[str] = None
    size_bytes: Optional[int] = None
    original_width: Optional[int] = None
    original_height: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.variants:
            raise ValueError("variant-bearing asset needs at least one variant")

    @property
    def is_image(self) -> bool:
        return True

    @property
    def available(self) -> list[VariantName]:
        """Registered variant names in canonical order."""
        return [name for name in VariantName if name in self.variants]

    @property
    def original_dimensions(self) -> Optional[tuple[int, int]]:
        if self.original_width and self.original_height:
            return self.original_width, self.original_height
        return None


AssetRecord = Union[ScalarAsset, VariantAsset]


@dataclass(frozen=True)
class Resolution:
    """
    What the resolver decided to serve.

    For a scalar asset ``variant``, ``requested`` and ``actual`` are all None.
    For a variant-bearing asset ``actual`` is the variant that matched in the
    fallback chain and may differ from ``requested``.
    """
    storage_mode: StorageMode
    location: str
    variant: Optional[VariantRecord] = None
    requested: Optional[VariantName] = None
    actual: Optional[VariantName] = None

    @property
    def fell_back(self) -> bool:
        return self.requested is not None and self.requested != self.actual


@dataclass
class ObjectStream:
    """
    A lazily-read object body plus whatever metadata the store reported.

    ``body`` yields chunks; ``close`` releases the underlying connection or
    file handle and is safe to call more than once.
    """
    body: Iterable[bytes]
    content_type: Optional[str] = None
    size: Optional[int] = None
    on_close: Optional[Callable[[], None]] = field(default=None, repr=False)

    def __iter__(self) -> Iterator[bytes]:
        try:
            yield from self.body
        finally:
            self.close()

    def close(self) -> None:
        closer, self.on_close = self.on_close, None
        if closer is not None:
            closer()
