"""Tests for loading registrations and purchase volumes from disk."""

import json

import pytest
from pydantic import ValidationError

from claims_analytics import loaders
from claims_analytics.foundation.purchase_volume import PurchaseVolume
from claims_analytics.loaders import (
    extract_raw_registrations,
    load_purchase_volumes,
    load_registrations,
)


def _record(reg_id):
    return {
        "id": reg_id,
        "productName": "Dental Pod",
        "shopifyOrderCreatedAt": "2024-01-10T00:00:00Z",
        "createdAt": "2024-01-20T00:00:00Z",
    }


def _write_json(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class TestExtractRawRegistrations:
    """Test the accepted document shapes."""

    def test_bare_list(self):
        assert extract_raw_registrations([_record("a")]) == [_record("a")]

    def test_cache_document_flattens_forms(self):
        payload = {
            "registrationsByForm": {
                "warranty-form": [_record("a")],
                "warranty-form-eu": [_record("b"), _record("c")],
            },
            "lastUpdated": "2024-01-01T00:00:00Z",
        }
        assert [r["id"] for r in extract_raw_registrations(payload)] == ["a", "b", "c"]

    def test_snapshot_document_selects_claim_type(self):
        payload = {
            "warrantyRegistrations": [_record("w")],
            "returnRegistrations": [_record("r1"), _record("r2")],
        }
        assert [r["id"] for r in extract_raw_registrations(payload, "return")] == ["r1", "r2"]
        assert [r["id"] for r in extract_raw_registrations(payload, "warranty")] == ["w"]

    def test_cache_document_selects_claim_type_form(self):
        payload = {
            "registrationsByForm": {
                "warranty-claim": [_record("w1")],
                "return-claim": [_record("r1"), _record("r2")],
            }
        }
        assert [r["id"] for r in extract_raw_registrations(payload, "warranty")] == ["w1"]
        assert [r["id"] for r in extract_raw_registrations(payload, "return")] == ["r1", "r2"]

    def test_cache_document_without_claim_type_form(self):
        payload = {"registrationsByForm": {"warranty-claim": [_record("w1")]}}
        assert extract_raw_registrations(payload, "return") == []

    def test_snapshot_document_requires_claim_type(self):
        with pytest.raises(ValueError, match="claim_type is required"):
            extract_raw_registrations({"warrantyRegistrations": []})

    def test_unrecognised_document(self):
        with pytest.raises(ValueError, match="Unrecognised registrations document"):
            extract_raw_registrations({"items": []})

    def test_scalar_payload(self):
        with pytest.raises(TypeError):
            extract_raw_registrations("registrations")


class TestLoadRegistrations:
    """Test file loading."""

    def test_load_list(self, tmp_path):
        path = _write_json(tmp_path / "regs.json", [_record("a"), _record("b")])
        regs = load_registrations(path)
        assert [reg.id for reg in regs] == ["a", "b"]
        assert regs[0].purchased_at is not None

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_registrations(path)

    def test_size_cap(self, tmp_path, monkeypatch):
        path = _write_json(tmp_path / "regs.json", [_record("a")])
        monkeypatch.setattr(loaders, "MAX_INPUT_BYTES", 10)
        with pytest.raises(ValueError, match="exceeds limit"):
            load_registrations(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_registrations(tmp_path / "absent.json")


class TestLoadPurchaseVolumes:
    """Test purchase volume loading."""

    def test_csv(self, tmp_path):
        path = tmp_path / "volumes.csv"
        path.write_text(
            "yearMonth,product,purchaseCount\n"
            "2024-01,Dental Pod,100\n"
            "2024-01,Dental Pod Go,40\n",
            encoding="utf-8",
        )
        assert load_purchase_volumes(path) == [
            PurchaseVolume("2024-01", "Dental Pod", 100),
            PurchaseVolume("2024-01", "Dental Pod Go", 40),
        ]

    def test_json_document(self, tmp_path):
        path = _write_json(
            tmp_path / "volumes.json",
            {"volumes": [{"yearMonth": "2024-02", "product": "Dental Pod", "purchaseCount": 7}]},
        )
        assert load_purchase_volumes(path) == [PurchaseVolume("2024-02", "Dental Pod", 7)]

    def test_negative_count_rejected(self, tmp_path):
        path = _write_json(
            tmp_path / "volumes.json",
            [{"yearMonth": "2024-02", "product": "Dental Pod", "purchaseCount": -7}],
        )
        with pytest.raises(ValidationError):
            load_purchase_volumes(path)

    def test_unrecognised_shape(self, tmp_path):
        path = _write_json(tmp_path / "volumes.json", {"items": []})
        with pytest.raises(ValueError, match="Expected a list of purchase volumes"):
            load_purchase_volumes(path)
