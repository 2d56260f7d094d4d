"""
Tests for the persisted record format.

Covers serialization of both record kinds and the integrity checks applied
when a stored document is read back.
"""
from __future__ import annotations

import json

import pytest

from asset_cdn.asset_types import ObjectStream, ScalarAsset, StorageMode, VariantAsset, VariantName, VariantRecord
from asset_cdn.errors import AssetIntegrityError
from asset_cdn.models import dump_record, load_record


@pytest.fixture
def variant_record():
    return VariantAsset(
        variants={
            VariantName.MEDIUM: VariantRecord(storage_key="m.jpg", width=1288, height=966, size_bytes=10),
            VariantName.ORIGINAL: VariantRecord(
                url="https://origin.example.com/o.jpg",
                width=4000,
                height=3000,
                size_bytes=20,
                content_type="image/png",
            ),
        },
        default_variant=VariantName.MEDIUM,
        content_type="image/jpeg",
        original_width=4000,
        original_height=3000,
        created_at="2024-05-01T12:00:00+00:00",
        updated_at="2024-05-01T12:00:00+00:00",
    )


class TestDumpRecord:
    """Test the stored JSON shape."""

    def test_scalar_shape(self):
        record = ScalarAsset(storage_mode=StorageMode.EXTERNAL_URL, primary_location="https://origin.example.com/a")
        document = json.loads(dump_record(record))

        assert document == {
            "is_image": False,
            "primary_location": "https://origin.example.com/a",
            "storage_mode": "url",
        }

    def test_variant_shape(self, variant_record):
        document = json.loads(dump_record(variant_record))

        assert document["is_image"] is True
        assert document["default_variant"] == "medium"
        assert "storage_mode" not in document
        assert "primary_location" not in document
        assert document["variants"]["medium"] == {
            "storage_key": "m.jpg",
            "width": 1288,
            "height": 966,
            "size_bytes": 10,
        }
        assert document["variants"]["original"]["content_type"] == "image/png"

    def test_output_is_canonical(self, variant_record):
        assert dump_record(variant_record) == dump_record(variant_record)
        assert " " not in dump_record(variant_record)


class TestLoadRecord:
    """Test reading stored documents back."""

    def test_variant_round_trip(self, variant_record):
        assert load_record(dump_record(variant_record)) == variant_record

    def test_scalar_round_trip(self):
        record = ScalarAsset(
            storage_mode=StorageMode.INTERNAL_KEY,
            primary_location="docs/a.pdf",
            content_type="application/pdf",
            size_bytes=99,
        )
        assert load_record(dump_record(record)) == record

    @pytest.mark.parametrize("document", [
        "not json",
        "[]",
        '{"is_image": false}',
        '{"storage_mode": "url"}',
        '{"primary_location": "a", "storage_mode": "ftp"}',
    ])
    def test_unusable_scalar_documents(self, document):
        with pytest.raises(AssetIntegrityError):
            load_record(document)

    def test_missing_default_variant(self):
        document = {
            "is_image": True,
            "variants": {"medium": {"storage_key": "m", "width": 1, "height": 1, "size_bytes": 1}},
        }
        with pytest.raises(AssetIntegrityError, match="default variant"):
            load_record(json.dumps(document))

    def test_unknown_variant_name(self):
        document = {
            "is_image": True,
            "default_variant": "medium",
            "variants": {"small": {"storage_key": "s", "width": 1, "height": 1, "size_bytes": 1}},
        }
        with pytest.raises(AssetIntegrityError, match="small"):
            load_record(json.dumps(document))

    def test_variant_with_two_locations(self):
        document = {
            "is_image": True,
            "default_variant": "medium",
            "variants": {"medium": {"storage_key": "m", "url": "https://x", "width": 1, "height": 1, "size_bytes": 1}},
        }
        with pytest.raises(AssetIntegrityError):
            load_record(json.dumps(document))

    def test_default_outside_variants_loads(self):
        document = {
            "is_image": True,
            "default_variant": "large",
            "variants": {"medium": {"storage_key": "m", "width": 1, "height": 1, "size_bytes": 1}},
        }
        record = load_record(json.dumps(document))
        assert record.default_variant is VariantName.LARGE


class TestObjectStream:
    """Test stream close semantics."""

    def test_iteration_closes(self):
        closed = []
        stream = ObjectStream(body=iter([b"a", b"b"]), on_close=lambda: closed.append(True))

        assert b"".join(stream) == b"ab"
        assert closed == [True]

    def test_close_is_idempotent(self):
        closed = []
        stream = ObjectStream(body=iter([b"a"]), on_close=lambda: closed.append(True))

        stream.close()
        stream.close()
        assert closed == [True]
