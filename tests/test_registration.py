"""Unit tests for registration record parsing."""

from datetime import datetime, timezone

import pytest

from claims_analytics.foundation.registration import (
    PURCHASE_CHANNEL_FIELD,
    REASON_FIELD,
    SUB_REASON_FIELD,
    FieldData,
    Registration,
    parse_registrations,
    parse_timestamp,
)

UTC = timezone.utc


def _raw(**overrides):
    raw = {
        "id": "reg-1",
        "productName": "Dental Pod Arctic White",
        "productSku": "DP-AW",
        "serialNumbers": ["SN-1", "SN-2"],
        "shopifyOrderCreatedAt": "2024-01-15T10:00:00Z",
        "createdAt": "2024-03-02T08:30:00.000Z",
        "fieldData": {
            REASON_FIELD: "Not charging",
            SUB_REASON_FIELD: "Cable",
            PURCHASE_CHANNEL_FIELD: "Shop App",
            "unrelated-field": "ignored",
        },
    }
    raw.update(overrides)
    return raw


class TestParseTimestamp:
    """Test vendor timestamp parsing."""

    def test_zulu_suffix(self):
        assert parse_timestamp("2024-01-15T10:00:00Z") == datetime(
            2024, 1, 15, 10, tzinfo=UTC
        )

    def test_offset_normalised_to_utc(self):
        parsed = parse_timestamp("2024-01-15T22:00:00-05:00")
        assert parsed == datetime(2024, 1, 16, 3, tzinfo=UTC)
        assert parsed.utcoffset().total_seconds() == 0

    def test_naive_values_are_utc(self):
        assert parse_timestamp(datetime(2024, 1, 15)) == datetime(2024, 1, 15, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "not a date", 12345])
    def test_unparseable_values_are_none(self, value):
        assert parse_timestamp(value) is None


class TestRegistrationFromMapping:
    """Test mapping raw vendor records onto Registration."""

    def test_full_record(self):
        reg = Registration.from_mapping(_raw())

        assert reg.id == "reg-1"
        assert reg.product_name == "Dental Pod Arctic White"
        assert reg.product_sku == "DP-AW"
        assert reg.serial_numbers == ("SN-1", "SN-2")
        assert reg.purchased_at == datetime(2024, 1, 15, 10, tzinfo=UTC)
        assert reg.created_at == datetime(2024, 3, 2, 8, 30, tzinfo=UTC)
        assert reg.reason == "Not charging"
        assert reg.sub_reason == "Cable"
        assert reg.purchase_channel == "Shop App"

    def test_purchase_date_fallback(self):
        """purchaseDate is used when the order timestamp is absent."""
        raw = _raw(shopifyOrderCreatedAt=None, purchaseDate="2024-01-10T00:00:00Z")
        reg = Registration.from_mapping(raw)
        assert reg.purchased_at == datetime(2024, 1, 10, tzinfo=UTC)

    def test_scalar_serial_number(self):
        reg = Registration.from_mapping(_raw(serialNumbers="SN123"))
        assert reg.serial_numbers == ("SN123",)

    def test_missing_purchase_timestamp(self):
        raw = _raw()
        del raw["shopifyOrderCreatedAt"]
        assert Registration.from_mapping(raw).purchased_at is None

    def test_missing_field_data(self):
        raw = _raw()
        del raw["fieldData"]
        reg = Registration.from_mapping(raw)
        assert reg.field_data == FieldData()
        assert reg.reason is None
        assert reg.purchase_channel is None

    def test_numeric_id_is_kept(self):
        assert Registration.from_mapping(_raw(id=42)).id == 42

    def test_missing_id_raises(self):
        with pytest.raises(ValueError, match="missing id"):
            Registration.from_mapping(_raw(id=None))

    def test_non_mapping_field_data_raises(self):
        with pytest.raises(TypeError, match="fieldData must be a mapping"):
            Registration.from_mapping(_raw(fieldData=["not", "a", "mapping"]))

    def test_to_serialisable_round_trip(self):
        reg = Registration.from_mapping(_raw())
        payload = reg.to_serialisable()

        assert payload["serialNumbers"] == ["SN-1", "SN-2"]
        assert payload["fieldData"] == {
            REASON_FIELD: "Not charging",
            SUB_REASON_FIELD: "Cable",
            PURCHASE_CHANNEL_FIELD: "Shop App",
        }
        assert Registration.from_mapping(payload) == reg


class TestParseRegistrations:
    """Test bulk parsing."""

    def test_parses_every_record(self):
        regs = parse_registrations([_raw(id="a"), _raw(id="b")])
        assert [reg.id for reg in regs] == ["a", "b"]

    def test_error_reports_index(self):
        with pytest.raises(ValueError, match="index 1"):
            parse_registrations([_raw(id="a"), _raw(id="")])
