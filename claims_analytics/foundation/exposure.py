"""Exposure-day calculation and claim validity rules.

A claim's exposure is the number of days between purchase and filing.
Claims outside the window allowed for their claim type (a year for
warranty claims, a month for returns) are treated as data errors and
excluded from every metric. Records missing either timestamp are
excluded too; they are never counted as zero-day claims.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Sequence

from claims_analytics.foundation.registration import Registration

_ONE_DAY = timedelta(days=1)


class ClaimType(str, Enum):
    """Kinds of claims tracked by the dashboard."""

    WARRANTY = "warranty"
    RETURN = "return"


@dataclass(frozen=True)
class ClaimTypePolicy:
    """Validity rules for one claim type.

    Attributes
    ----------
    claim_type:
        Claim type the rules apply to.
    min_exposure_days:
        Inclusive lower bound on exposure days.
    max_exposure_days:
        Inclusive upper bound on exposure days.
    max_months:
        Last months-since-purchase offset tracked by the cohort engine.
    allowed_channels:
        Purchase channels eligible for cohort analysis. ``None`` means any
        channel, including records with no channel at all.
    """

    claim_type: ClaimType
    min_exposure_days: int
    max_exposure_days: int
    max_months: int
    allowed_channels: frozenset[str] | None = None

    def __post_init__(self) -> None:
        if self.min_exposure_days > self.max_exposure_days:
            raise ValueError(
                f"min_exposure_days must be <= max_exposure_days, got "
                f"{self.min_exposure_days} > {self.max_exposure_days}"
            )
        if self.max_months < 0:
            raise ValueError(f"max_months must be >= 0, got {self.max_months}")

    def accepts_channel(self, channel: str | None) -> bool:
        if self.allowed_channels is None:
            return True
        return channel is not None and channel in self.allowed_channels


#: Store channels whose orders are covered by the tracked purchase volumes.
STORE_CHANNELS = frozenset(
    {"Shop App", "Zima Dental Website", "Zima Dental Website or Shop App"}
)

POLICIES: dict[ClaimType, ClaimTypePolicy] = {
    ClaimType.WARRANTY: ClaimTypePolicy(
        claim_type=ClaimType.WARRANTY,
        min_exposure_days=0,
        max_exposure_days=365,
        max_months=12,
        allowed_channels=STORE_CHANNELS,
    ),
    ClaimType.RETURN: ClaimTypePolicy(
        claim_type=ClaimType.RETURN,
        min_exposure_days=0,
        max_exposure_days=31,
        max_months=1,
    ),
}


def get_policy(claim_type: ClaimType | str) -> ClaimTypePolicy:
    return POLICIES[ClaimType(claim_type)]


def calculate_exposure_days(purchased_at: datetime, claimed_at: datetime) -> int:
    """Days from purchase to claim, rounded up and clamped at zero.

    Examples
    --------
    >>> from datetime import datetime
    >>> calculate_exposure_days(datetime(2024, 1, 1), datetime(2024, 1, 2, 1))
    2
    >>> calculate_exposure_days(datetime(2024, 1, 5), datetime(2024, 1, 1))
    0
    """
    days = math.ceil((claimed_at - purchased_at) / _ONE_DAY)
    return max(0, days)


def is_valid_exposure(exposure_days: int, claim_type: ClaimType | str) -> bool:
    """Return True if ``exposure_days`` falls inside the claim type's window."""
    policy = get_policy(claim_type)
    return policy.min_exposure_days <= exposure_days <= policy.max_exposure_days


def registration_exposure_days(registration: Registration) -> int | None:
    """Exposure days for a registration, or None if a timestamp is missing."""
    if registration.purchased_at is None or registration.created_at is None:
        return None
    return calculate_exposure_days(registration.purchased_at, registration.created_at)


def filter_by_valid_exposure(
    registrations: Iterable[Registration], claim_type: ClaimType | str
) -> list[Registration]:
    """Keep only registrations with both timestamps and a valid exposure."""
    valid: list[Registration] = []
    for registration in registrations:
        days = registration_exposure_days(registration)
        if days is not None and is_valid_exposure(days, claim_type):
            valid.append(registration)
    return valid


@dataclass(frozen=True)
class ExposureSummary:
    """Counts describing how many records survived the validity filter.

    Attributes
    ----------
    total_records:
        Records passed in.
    valid_records:
        Records with both timestamps and an in-window exposure.
    missing_dates:
        Records lacking a purchase or claim timestamp.
    out_of_range:
        Records whose exposure falls outside the claim type's window.
    """

    total_records: int
    valid_records: int
    missing_dates: int
    out_of_range: int

    def __post_init__(self) -> None:
        if self.valid_records + self.missing_dates + self.out_of_range != self.total_records:
            raise ValueError(
                "valid_records + missing_dates + out_of_range must equal total_records"
            )

    @property
    def excluded_count(self) -> int:
        return self.total_records - self.valid_records


def summarize_exposure(
    registrations: Sequence[Registration], claim_type: ClaimType | str
) -> ExposureSummary:
    """Classify registrations by exposure validity."""
    missing = 0
    out_of_range = 0
    for registration in registrations:
        days = registration_exposure_days(registration)
        if days is None:
            missing += 1
        elif not is_valid_exposure(days, claim_type):
            out_of_range += 1
    return ExposureSummary(
        total_records=len(registrations),
        valid_records=len(registrations) - missing - out_of_range,
        missing_dates=missing,
        out_of_range=out_of_range,
    )
