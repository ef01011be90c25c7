"""Unit tests for exposure days and claim validity."""

from datetime import datetime, timedelta, timezone

import pytest

from claims_analytics.foundation.exposure import (
    POLICIES,
    STORE_CHANNELS,
    ClaimType,
    ClaimTypePolicy,
    ExposureSummary,
    calculate_exposure_days,
    filter_by_valid_exposure,
    get_policy,
    is_valid_exposure,
    registration_exposure_days,
    summarize_exposure,
)
from claims_analytics.foundation.registration import Registration

UTC = timezone.utc
PURCHASED = datetime(2024, 1, 1, 12, tzinfo=UTC)


def _reg(reg_id, days=None, purchased=PURCHASED):
    created = purchased + timedelta(days=days) if days is not None else None
    return Registration(id=reg_id, purchased_at=purchased, created_at=created)


class TestCalculateExposureDays:
    """Test exposure day arithmetic."""

    def test_partial_days_round_up(self):
        assert calculate_exposure_days(PURCHASED, PURCHASED + timedelta(hours=1)) == 1
        assert calculate_exposure_days(PURCHASED, PURCHASED + timedelta(days=2, minutes=1)) == 3

    def test_same_instant_is_zero(self):
        assert calculate_exposure_days(PURCHASED, PURCHASED) == 0

    def test_claim_before_purchase_clamps_to_zero(self):
        assert calculate_exposure_days(PURCHASED, PURCHASED - timedelta(days=3)) == 0


class TestValidity:
    """Test exposure windows per claim type."""

    @pytest.mark.parametrize(
        "days, claim_type, expected",
        [
            (0, ClaimType.WARRANTY, True),
            (365, ClaimType.WARRANTY, True),
            (366, ClaimType.WARRANTY, False),
            (0, ClaimType.RETURN, True),
            (31, ClaimType.RETURN, True),
            (32, ClaimType.RETURN, False),
        ],
    )
    def test_window_bounds(self, days, claim_type, expected):
        assert is_valid_exposure(days, claim_type) is expected

    def test_string_claim_type(self):
        assert is_valid_exposure(100, "warranty")
        assert not is_valid_exposure(100, "return")

    def test_unknown_claim_type_raises(self):
        with pytest.raises(ValueError):
            get_policy("refund")

    def test_policies(self):
        warranty = POLICIES[ClaimType.WARRANTY]
        assert warranty.max_months == 12
        assert warranty.allowed_channels == STORE_CHANNELS
        assert warranty.accepts_channel("Shop App")
        assert not warranty.accepts_channel("Amazon")
        assert not warranty.accepts_channel(None)

        returns = POLICIES[ClaimType.RETURN]
        assert returns.max_months == 1
        assert returns.accepts_channel(None)
        assert returns.accepts_channel("Amazon")

    def test_policy_rejects_inverted_window(self):
        with pytest.raises(ValueError, match="min_exposure_days must be <="):
            ClaimTypePolicy(
                claim_type=ClaimType.RETURN,
                min_exposure_days=10,
                max_exposure_days=5,
                max_months=1,
            )


class TestFilterByValidExposure:
    """Test record-level filtering and its summary."""

    def test_missing_dates_excluded(self):
        no_claim_date = _reg("a")
        no_purchase = Registration(id="b", created_at=PURCHASED)
        assert registration_exposure_days(no_claim_date) is None
        assert filter_by_valid_exposure([no_claim_date, no_purchase], "warranty") == []

    def test_keeps_input_order(self):
        regs = [_reg("a", 10), _reg("b", 400), _reg("c", 0), _reg("d", 20)]
        kept = filter_by_valid_exposure(regs, ClaimType.WARRANTY)
        assert [reg.id for reg in kept] == ["a", "c", "d"]

    def test_return_window(self):
        regs = [_reg("a", 31), _reg("b", 32)]
        assert [reg.id for reg in filter_by_valid_exposure(regs, "return")] == ["a"]

    def test_summary_counts(self):
        regs = [_reg("a", 10), _reg("b", 400), _reg("c"), _reg("d", 20)]
        summary = summarize_exposure(regs, ClaimType.WARRANTY)

        assert summary == ExposureSummary(
            total_records=4, valid_records=2, missing_dates=1, out_of_range=1
        )
        assert summary.excluded_count == 2

    def test_summary_rejects_inconsistent_counts(self):
        with pytest.raises(ValueError, match="must equal total_records"):
            ExposureSummary(total_records=3, valid_records=1, missing_dates=0, out_of_range=0)
