"""Cohort survival analysis of warranty and return claims.

Purchases made in the same calendar month form a cohort. For every month
after purchase the engine reports how many units of the cohort have had a
claim filed so far (cumulative) and what share of the cohort's purchase
volume is still claim-free (the survival rate).

Quick Start
-----------
>>> from datetime import date
>>> from claims_analytics.analyses.cohort_survival import calculate_cohort_survival
>>> result = calculate_cohort_survival(
...     registrations,
...     purchase_volumes,
...     product_filter="All Products",
...     start_month="2024-01",
...     end_month="2024-06",
...     claim_type="warranty",
...     as_of=date(2025, 3, 15),
... )  # doctest: +SKIP
>>> result.points[0].survival_rate  # doctest: +SKIP
99.6

Notes
-----
Claims are cumulative by construction: a claim filed ``k`` months after
purchase counts toward every snapshot from offset ``k`` up to the claim
type's horizon (12 months for warranty, 1 for returns). Snapshots for
months that have not fully elapsed at ``as_of`` are never emitted, since
their counts are still accumulating.

A cohort with no recorded purchase volume still produces points with a
0 % claim rate; ``purchase_volume == 0`` must be read as "no data".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from itertools import accumulate
from typing import Sequence

from claims_analytics.foundation.exposure import (
    ClaimType,
    get_policy,
    is_valid_exposure,
    registration_exposure_days,
)
from claims_analytics.foundation.periods import (
    TimePeriod,
    add_months,
    get_period_key,
    get_period_label,
    iter_months,
    last_complete_month,
    months_between,
)
from claims_analytics.foundation.products import (
    extract_product_type,
    matches_product_filter,
    products_for_filter,
)
from claims_analytics.foundation.purchase_volume import (
    PurchaseVolume,
    build_volume_lookup,
)
from claims_analytics.foundation.registration import Registration

logger = logging.getLogger(__name__)

_RATE_TOLERANCE = 1e-9


@dataclass(frozen=True)
class CohortDataPoint:
    """Cumulative claim metrics for one cohort at one month offset.

    Attributes
    ----------
    cohort_month:
        Purchase month of the cohort (``YYYY-MM``).
    cohort_label:
        Display label of the cohort month (``"Jan 2024"``).
    months_since_purchase:
        Offset from the cohort month (0 = month of purchase).
    claim_count:
        Claims filed up to and including this offset.
    purchase_volume:
        Units sold in the cohort month; 0 means no volume on record.
    survival_rate:
        Percentage of the cohort without a claim so far.
    claim_rate:
        Percentage of the cohort with a claim so far.
    """

    cohort_month: str
    cohort_label: str
    months_since_purchase: int
    claim_count: int
    purchase_volume: int
    survival_rate: float
    claim_rate: float

    def __post_init__(self) -> None:
        if self.months_since_purchase < 0:
            raise ValueError(
                f"months_since_purchase must be >= 0, got {self.months_since_purchase}"
            )
        if self.claim_count < 0:
            raise ValueError(f"claim_count must be >= 0, got {self.claim_count}")
        if self.purchase_volume < 0:
            raise ValueError(
                f"purchase_volume must be >= 0, got {self.purchase_volume}"
            )
        if abs(self.claim_rate + self.survival_rate - 100) > _RATE_TOLERANCE:
            raise ValueError(
                f"claim_rate + survival_rate must equal 100, got "
                f"{self.claim_rate} + {self.survival_rate}"
            )

    @property
    def has_purchase_data(self) -> bool:
        return self.purchase_volume > 0

    def as_dict(self) -> dict[str, object]:
        return {
            "cohortMonth": self.cohort_month,
            "cohortLabel": self.cohort_label,
            "monthsSincePurchase": self.months_since_purchase,
            "claimCount": self.claim_count,
            "purchaseVolume": self.purchase_volume,
            "survivalRate": self.survival_rate,
            "claimRate": self.claim_rate,
        }


@dataclass(frozen=True)
class CohortCoverage:
    """How the input registrations were split by the eligibility rules.

    Each excluded record is counted once, under the first rule it failed,
    checked in the order the fields are listed.
    """

    total_records: int
    eligible_records: int
    missing_dates: int = 0
    invalid_exposure: int = 0
    untracked_channel: int = 0
    product_mismatch: int = 0
    outside_range: int = 0

    @property
    def excluded_count(self) -> int:
        return self.total_records - self.eligible_records


@dataclass(frozen=True)
class CohortSurvivalResult:
    """Cohort survival points with their data-quality coverage.

    Attributes
    ----------
    points:
        Points ordered by cohort month, then months since purchase.
    coverage:
        Breakdown of the records excluded before counting.
    last_complete_month:
        Latest month a point may represent.
    """

    points: list[CohortDataPoint]
    coverage: CohortCoverage
    last_complete_month: str

    def for_cohort(self, cohort_month: str) -> list[CohortDataPoint]:
        return [p for p in self.points if p.cohort_month == cohort_month]


def cumulative_claim_counts(offsets: Sequence[int], max_months: int) -> list[int]:
    """Cumulative claims at each offset ``0..max_months``.

    Each claim adds one to every offset from its own up to ``max_months``:
    new claims are tallied per offset and turned into a running sum.
    Offsets beyond the horizon are ignored and negative offsets count from 0.

    Examples
    --------
    >>> cumulative_claim_counts([0, 0, 1, 1, 1], max_months=3)
    [2, 5, 5, 5]
    """
    new_claims = [0] * (max_months + 1)
    for offset in offsets:
        if offset > max_months:
            continue
        new_claims[max(offset, 0)] += 1
    return list(accumulate(new_claims))


def _cohort_volume(
    lookup: dict[tuple[str, str], int], cohort_month: str, product_filter: str
) -> int:
    return sum(
        lookup.get((cohort_month, product), 0)
        for product in products_for_filter(product_filter)
    )


def calculate_cohort_survival(
    registrations: Sequence[Registration],
    purchase_volumes: Sequence[PurchaseVolume],
    product_filter: str,
    start_month: str,
    end_month: str,
    claim_type: ClaimType | str,
    *,
    as_of: date | datetime,
) -> CohortSurvivalResult:
    """Build the cohort survival matrix for a product and month range.

    Parameters
    ----------
    registrations:
        All loaded claims of ``claim_type``.
    purchase_volumes:
        Monthly units sold per tracked product.
    product_filter:
        ``"All Products"`` or one tracked product type.
    start_month, end_month:
        Inclusive range of cohort months (``YYYY-MM``).
    claim_type:
        ``"warranty"`` or ``"return"``; decides the exposure window, the
        horizon and whether the purchase channel is restricted.
    as_of:
        Reference "now" for the completeness cutoff.

    Returns
    -------
    CohortSurvivalResult
        One point per cohort month in range and offset ``0..max_months``
        whose represented month has fully elapsed.
    """
    policy = get_policy(claim_type)
    cutoff = last_complete_month(as_of)

    offsets_by_cohort: dict[str, list[int]] = {}
    counts = dict.fromkeys(
        (
            "missing_dates",
            "invalid_exposure",
            "untracked_channel",
            "product_mismatch",
            "outside_range",
        ),
        0,
    )
    eligible = 0
    for reg in registrations:
        days = registration_exposure_days(reg)
        if days is None:
            counts["missing_dates"] += 1
            continue
        if not is_valid_exposure(days, policy.claim_type):
            counts["invalid_exposure"] += 1
            continue
        if not policy.accepts_channel(reg.purchase_channel):
            counts["untracked_channel"] += 1
            continue
        if not matches_product_filter(
            extract_product_type(reg.product_name), product_filter
        ):
            counts["product_mismatch"] += 1
            continue

        cohort_month = get_period_key(reg.purchased_at, TimePeriod.MONTHLY)
        if not start_month <= cohort_month <= end_month:
            counts["outside_range"] += 1
            continue

        eligible += 1
        offsets_by_cohort.setdefault(cohort_month, []).append(
            months_between(reg.purchased_at, reg.created_at)
        )

    coverage = CohortCoverage(
        total_records=len(registrations), eligible_records=eligible, **counts
    )
    if coverage.excluded_count:
        logger.info(
            f"Cohort survival ({policy.claim_type.value}, {product_filter}): "
            f"{coverage.excluded_count}/{coverage.total_records} registrations "
            f"excluded ({counts})"
        )

    lookup = build_volume_lookup(purchase_volumes)
    points: list[CohortDataPoint] = []
    for cohort_month in iter_months(start_month, end_month):
        cumulative = cumulative_claim_counts(
            offsets_by_cohort.get(cohort_month, ()), policy.max_months
        )
        volume = _cohort_volume(lookup, cohort_month, product_filter)
        label = get_period_label(cohort_month, TimePeriod.MONTHLY)
        for offset, claim_count in enumerate(cumulative):
            if add_months(cohort_month, offset) > cutoff:
                break
            claim_rate = (claim_count / volume) * 100 if volume > 0 else 0.0
            points.append(
                CohortDataPoint(
                    cohort_month=cohort_month,
                    cohort_label=label,
                    months_since_purchase=offset,
                    claim_count=claim_count,
                    purchase_volume=volume,
                    survival_rate=100 - claim_rate,
                    claim_rate=claim_rate,
                )
            )

    return CohortSurvivalResult(
        points=points, coverage=coverage, last_complete_month=cutoff
    )


#: Survival-rate colour bands, as (lower bound, background colour).
SURVIVAL_BANDS: tuple[tuple[float, str], ...] = (
    (98, "#f0fdf4"),
    (95, "#d1fae5"),
    (90, "#fef9c3"),
    (85, "#fde68a"),
    (80, "#fcd34d"),
    (75, "#fed7aa"),
    (70, "#fdba74"),
    (60, "#fb923c"),
    (50, "#fecaca"),
)
LOWEST_BAND_COLOR = "#dc2626"
NO_DATA_COLOR = "#f1f5f9"
_DARK_BACKGROUNDS = frozenset({LOWEST_BAND_COLOR, "#fb923c"})


def survival_rate_band(rate: float, has_purchase_data: bool) -> tuple[str, str]:
    """Return ``(background, text)`` colours for a heatmap cell.

    Examples
    --------
    >>> survival_rate_band(99.0, True)
    ('#f0fdf4', '#1e293b')
    >>> survival_rate_band(40.0, True)
    ('#dc2626', '#ffffff')
    """
    if not has_purchase_data:
        background = NO_DATA_COLOR
    else:
        background = next(
            (color for bound, color in SURVIVAL_BANDS if rate >= bound),
            LOWEST_BAND_COLOR,
        )
    text = "#ffffff" if background in _DARK_BACKGROUNDS else "#1e293b"
    return background, text
