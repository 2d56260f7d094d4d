"""
Tests for registration validation.

Validates the location rules for scalar assets, per-variant completeness for
image assets, and that every rejection names the offending field or variant.
"""
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from asset_cdn.asset_types import ScalarAsset, StorageMode, VariantAsset, VariantName
from asset_cdn.errors import AssetValidationError
from asset_cdn.validation import parse_registration, validate_registration

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _variant(**overrides):
    payload = {"storage_key": "img/v.jpg", "width": 10, "height": 10, "size_bytes": 5}
    payload.update(overrides)
    return payload


class TestScalarRegistration:
    """Test the exactly-one-location rule."""

    def test_url_only(self):
        record = validate_registration({"url": "https://origin.example.com/a.pdf", "content_type": "application/pdf"})

        assert isinstance(record, ScalarAsset)
        assert record.storage_mode is StorageMode.EXTERNAL_URL
        assert record.primary_location == "https://origin.example.com/a.pdf"
        assert record.content_type == "application/pdf"
        assert record.is_image is False

    def test_storage_key_only(self):
        record = validate_registration({"storage_key": "docs/a.pdf", "size_bytes": 42})

        assert record.storage_mode is StorageMode.INTERNAL_KEY
        assert record.primary_location == "docs/a.pdf"
        assert record.size_bytes == 42

    def test_r2_key_alias(self):
        record = validate_registration({"r2_key": "docs/a.pdf"})
        assert record.primary_location == "docs/a.pdf"

    def test_both_locations_rejected(self):
        with pytest.raises(AssetValidationError) as exc_info:
            validate_registration({"url": "https://origin.example.com/a", "storage_key": "a"})
        assert exc_info.value.kind == "ambiguous_location"

    @pytest.mark.parametrize("body", [{}, {"url": ""}, {"content_type": "text/plain"}])
    def test_no_location_rejected(self, body):
        with pytest.raises(AssetValidationError) as exc_info:
            validate_registration(body)
        assert exc_info.value.kind == "missing_location"

    def test_image_without_variants_uses_scalar_rule(self):
        record = validate_registration({"is_image": True, "url": "https://origin.example.com/a.png"})

        assert isinstance(record, ScalarAsset)
        assert record.is_image is True

    def test_image_without_variants_or_location_rejected(self):
        with pytest.raises(AssetValidationError) as exc_info:
            validate_registration({"is_image": True})
        assert exc_info.value.kind == "missing_location"

    def test_non_image_ignores_variants(self):
        record = validate_registration({
            "storage_key": "a.bin",
            "variants": {"medium": _variant()},
        })
        assert isinstance(record, ScalarAsset)

    def test_timestamps(self):
        record = validate_registration({"storage_key": "a.bin"}, now=NOW)
        assert record.created_at == NOW.isoformat()
        assert record.updated_at == NOW.isoformat()

    def test_created_at_is_kept_on_reregistration(self):
        record = validate_registration({"storage_key": "a.bin", "created_at": "2020-01-01T00:00:00+00:00"}, now=NOW)
        assert record.created_at == "2020-01-01T00:00:00+00:00"
        assert record.updated_at == NOW.isoformat()


class TestVariantRegistration:
    """Test image registrations with a variants mapping."""

    def test_valid_variants(self):
        record = validate_registration({
            "is_image": True,
            "original_width": 1000,
            "variants": {
                "thumb": _variant(storage_key="t.jpg"),
                "original": _variant(storage_key=None, url="https://origin.example.com/o.jpg"),
            },
        })

        assert isinstance(record, VariantAsset)
        assert record.available == [VariantName.THUMB, VariantName.ORIGINAL]
        assert record.variants[VariantName.ORIGINAL].storage_mode is StorageMode.EXTERNAL_URL
        assert record.default_variant is VariantName.ORIGINAL

    def test_empty_variants_rejected(self):
        with pytest.raises(AssetValidationError) as exc_info:
            validate_registration({"is_image": True, "variants": {}})
        assert exc_info.value.kind == "no_variants"

    @pytest.mark.parametrize("missing", ["width", "height", "size_bytes"])
    def test_missing_dimension_rejects_whole_registration(self, missing):
        bad = _variant()
        del bad[missing]

        with pytest.raises(AssetValidationError) as exc_info:
            validate_registration({
                "is_image": True,
                "variants": {"medium": _variant(), "large": bad},
            })

        assert exc_info.value.kind == "invalid_variant"
        assert exc_info.value.variant == "large"
        assert exc_info.value.field == missing
        assert "large" in str(exc_info.value)

    @pytest.mark.parametrize("locations", [
        {"storage_key": None},
        {"url": "https://origin.example.com/x.jpg"},
    ])
    def test_variant_needs_exactly_one_location(self, locations):
        with pytest.raises(AssetValidationError) as exc_info:
            validate_registration({"is_image": True, "variants": {"thumb": _variant(**locations)}})

        assert exc_info.value.kind == "invalid_variant"
        assert exc_info.value.variant == "thumb"

    def test_non_integer_width_names_variant(self):
        with pytest.raises(AssetValidationError) as exc_info:
            validate_registration({"is_image": True, "variants": {"medium": _variant(width="wide")}})

        assert exc_info.value.kind == "invalid_variant"
        assert exc_info.value.variant == "medium"
        assert exc_info.value.field == "width"

    def test_unknown_variant_name(self):
        with pytest.raises(AssetValidationError) as exc_info:
            validate_registration({"is_image": True, "variants": {"small": _variant()}})

        assert exc_info.value.kind == "unknown_variant"
        assert exc_info.value.variant == "small"

    def test_variant_r2_key_alias(self):
        record = validate_registration({
            "is_image": True,
            "variants": {"medium": {"r2_key": "m.jpg", "width": 1, "height": 1, "size_bytes": 1}},
        })
        assert record.variants[VariantName.MEDIUM].storage_key == "m.jpg"

    def test_variant_drops_top_level_location(self):
        record = validate_registration({
            "is_image": True,
            "url": "https://origin.example.com/ignored.jpg",
            "variants": {"medium": _variant()},
        })
        assert isinstance(record, VariantAsset)

    def test_explicit_default_is_kept(self):
        record = validate_registration({
            "is_image": True,
            "default_variant": "thumb",
            "variants": {"thumb": _variant(), "medium": _variant()},
        })
        assert record.default_variant is VariantName.THUMB

    @pytest.mark.parametrize("default", ["large", "huge"])
    def test_explicit_default_must_be_registered(self, default):
        with pytest.raises(AssetValidationError) as exc_info:
            validate_registration({
                "is_image": True,
                "default_variant": default,
                "variants": {"medium": _variant()},
            })
        assert exc_info.value.kind == "invalid_default"
        assert exc_info.value.field == "default_variant"


class TestParseRegistration:
    """Test shape errors surfaced before the registration rules run."""

    @pytest.mark.parametrize("raw", [None, [], "body", 3])
    def test_non_object_body(self, raw):
        with pytest.raises(AssetValidationError) as exc_info:
            parse_registration(raw)
        assert exc_info.value.kind == "malformed_body"

    def test_wrong_type_names_field(self):
        with pytest.raises(AssetValidationError) as exc_info:
            parse_registration({"url": "https://origin.example.com/a", "size_bytes": "big"})

        assert exc_info.value.kind == "malformed_body"
        assert exc_info.value.field == "size_bytes"

    def test_variants_must_be_mapping(self):
        with pytest.raises(AssetValidationError) as exc_info:
            parse_registration({"is_image": True, "variants": ["medium"]})
        assert exc_info.value.kind == "malformed_body"

    def test_unknown_fields_ignored(self):
        request = parse_registration({"url": "https://origin.example.com/a", "colour": "blue"})
        assert request.url == "https://origin.example.com/a"
