"""Time-bucketed claim aggregations.

Two series feed the claims charts:

- claims as a percentage of exposure days per period, and
- claim counts per period stacked by a category (product, SKU, reason,
  purchase channel or serial number), keeping the top categories and
  folding the rest into ``"Other"``.

Both apply the exposure validity filter before counting and report how
many records it excluded.

Quick Start
-----------
>>> from claims_analytics.analyses.aggregation import calculate_claims_over_time
>>> result = calculate_claims_over_time(registrations, "monthly", "productName")  # doctest: +SKIP
>>> result.categories[:3]  # doctest: +SKIP
['Dental Pod Arctic White', 'Dental Pod Pro Arctic White', 'Zima Go']
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from claims_analytics.foundation.exposure import (
    ClaimType,
    ExposureSummary,
    is_valid_exposure,
    registration_exposure_days,
    summarize_exposure,
)
from claims_analytics.foundation.periods import (
    TimePeriod,
    get_period_key,
    get_period_label,
)
from claims_analytics.foundation.registration import Registration

logger = logging.getLogger(__name__)

#: Category name used for the merged tail of the stacked series.
OTHER_CATEGORY = "Other"
#: Label given to a real category named "Other" so it stays apart from the merged tail.
REPORTED_OTHER = "Other (reported)"
#: Category name used when the stacked series is not grouped.
ALL_CLAIMS = "All Claims"
#: Number of categories that keep their own series.
DEFAULT_TOP_N = 15


class GroupBy(str, Enum):
    """Category used to split the stacked claims series."""

    NONE = "none"
    PRODUCT_NAME = "productName"
    SKU = "sku"
    REASON = "reason"
    PURCHASE_CHANNEL = "purchaseChannel"
    SERIAL_NUMBER = "serialNumber"


@dataclass(frozen=True)
class ChartDataPoint:
    """Claims-per-exposure metrics for one period."""

    period: str
    period_label: str
    claim_count: int
    total_exposure_days: int
    claims_percentage: float

    def as_dict(self) -> dict[str, object]:
        return {
            "period": self.period,
            "periodLabel": self.period_label,
            "claimCount": self.claim_count,
            "totalExposureDays": self.total_exposure_days,
            "claimsPercentage": self.claims_percentage,
        }


@dataclass(frozen=True)
class StackedChartDataPoint:
    """Claim counts for one period split by category.

    Attributes
    ----------
    period:
        Period key.
    period_label:
        Display label for the period.
    total:
        Sum of all category counts, including ``"Other"``.
    counts:
        Count per retained category, plus ``"Other"`` when non-zero.
    other_breakdown:
        Counts of the categories merged into ``"Other"`` for this period,
        or None if nothing was merged.
    """

    period: str
    period_label: str
    total: int
    counts: dict[str, int] = field(default_factory=dict)
    other_breakdown: dict[str, int] | None = None

    def as_dict(self) -> dict[str, object]:
        """Flatten categories into the point, as the stacked chart expects."""
        payload: dict[str, object] = {
            "period": self.period,
            "periodLabel": self.period_label,
            "total": self.total,
        }
        payload.update(self.counts)
        if self.other_breakdown is not None:
            payload["otherBreakdown"] = dict(self.other_breakdown)
        return payload


@dataclass(frozen=True)
class ClaimsPercentageSeries:
    """Claims-percentage series plus the validity filter's coverage."""

    points: list[ChartDataPoint]
    quality: ExposureSummary


@dataclass(frozen=True)
class ClaimsOverTime:
    """Stacked claims series.

    Attributes
    ----------
    data:
        Points ordered by period key.
    categories:
        Retained categories by descending total, then ``"Other"`` if any
        category was merged.
    quality:
        Coverage of the exposure validity filter.
    """

    data: list[StackedChartDataPoint]
    categories: list[str]
    quality: ExposureSummary


def _log_exclusions(name: str, quality: ExposureSummary) -> None:
    if quality.excluded_count:
        logger.warning(
            f"{name}: excluded {quality.excluded_count}/{quality.total_records} "
            f"registrations ({quality.missing_dates} missing dates, "
            f"{quality.out_of_range} outside the exposure window)"
        )


def _valid_with_days(
    registrations: Sequence[Registration], claim_type: ClaimType | str
) -> list[tuple[Registration, int]]:
    valid: list[tuple[Registration, int]] = []
    for reg in registrations:
        days = registration_exposure_days(reg)
        if days is not None and is_valid_exposure(days, claim_type):
            valid.append((reg, days))
    return valid


def calculate_claims_percentage_by_period(
    registrations: Sequence[Registration],
    period: TimePeriod | str,
    claim_type: ClaimType | str = ClaimType.WARRANTY,
) -> ClaimsPercentageSeries:
    """Bucket valid claims by filing date and relate them to exposure days.

    ``claims_percentage`` is ``claim_count / total_exposure_days * 100`` and
    0 when the bucket has no exposure days (all same-day claims).
    """
    period = TimePeriod(period)
    buckets: dict[str, list[int]] = {}
    for reg, days in _valid_with_days(registrations, claim_type):
        key = get_period_key(reg.created_at, period)
        bucket = buckets.setdefault(key, [0, 0])
        bucket[0] += 1
        bucket[1] += days

    points = [
        ChartDataPoint(
            period=key,
            period_label=get_period_label(key, period),
            claim_count=count,
            total_exposure_days=exposure,
            claims_percentage=(count / exposure) * 100 if exposure > 0 else 0.0,
        )
        for key, (count, exposure) in sorted(buckets.items())
    ]

    quality = summarize_exposure(registrations, claim_type)
    _log_exclusions("claims percentage", quality)
    return ClaimsPercentageSeries(points=points, quality=quality)


def get_group_value(registration: Registration, group_by: GroupBy | str) -> str:
    """Return the stacking category of a registration.

    A category literally named ``"Other"`` is returned as
    :data:`REPORTED_OTHER` so it never merges with the folded tail.
    """
    group_by = GroupBy(group_by)
    if group_by is GroupBy.PRODUCT_NAME:
        value = registration.product_name or "Unknown Product"
    elif group_by is GroupBy.SKU:
        value = registration.product_sku or "Unknown SKU"
    elif group_by is GroupBy.REASON:
        value = registration.reason or "Unknown Reason"
    elif group_by is GroupBy.PURCHASE_CHANNEL:
        value = registration.purchase_channel or "Unknown Channel"
    elif group_by is GroupBy.SERIAL_NUMBER:
        serials = registration.serial_numbers
        value = serials[0] if serials else "Unknown Serial"
    else:
        return ALL_CLAIMS
    return REPORTED_OTHER if value == OTHER_CATEGORY else value


def calculate_claims_over_time(
    registrations: Sequence[Registration],
    period: TimePeriod | str,
    group_by: GroupBy | str = GroupBy.NONE,
    claim_type: ClaimType | str = ClaimType.WARRANTY,
    top_n: int = DEFAULT_TOP_N,
) -> ClaimsOverTime:
    """Count valid claims per period, stacked by category.

    Categories are ranked by their total across all periods; the first
    ``top_n`` keep their own series and the rest are summed per period into
    ``"Other"``, whose per-period breakdown is kept for drill-down. Ties keep
    the order in which categories first appear. Without grouping there is a
    single ``"All Claims"`` category and nothing is merged.
    """
    period = TimePeriod(period)
    group_by = GroupBy(group_by)

    period_counts: dict[str, Counter[str]] = defaultdict(Counter)
    totals: Counter[str] = Counter()
    for reg, _days in _valid_with_days(registrations, claim_type):
        key = get_period_key(reg.created_at, period)
        category = get_group_value(reg, group_by)
        period_counts[key][category] += 1
        totals[category] += 1

    # Counter preserves first-seen order, and sorted() is stable.
    ranked = sorted(totals, key=lambda category: totals[category], reverse=True)
    if group_by is GroupBy.NONE:
        top, merged = ranked, []
    else:
        top, merged = ranked[:top_n], ranked[top_n:]

    data: list[StackedChartDataPoint] = []
    for key in sorted(period_counts):
        counts = period_counts[key]
        series = {category: counts.get(category, 0) for category in top}
        breakdown = {
            category: counts[category] for category in merged if counts.get(category)
        }
        other_total = sum(breakdown.values())
        if other_total:
            series[OTHER_CATEGORY] = other_total
        data.append(
            StackedChartDataPoint(
                period=key,
                period_label=get_period_label(key, period),
                total=sum(counts.values()),
                counts=series,
                other_breakdown=breakdown if other_total else None,
            )
        )

    categories = list(top)
    if merged:
        categories.append(OTHER_CATEGORY)

    quality = summarize_exposure(registrations, claim_type)
    _log_exclusions("claims over time", quality)
    logger.debug(
        f"claims over time: {len(data)} {period.value} periods, "
        f"{len(top)} categories kept, {len(merged)} merged into {OTHER_CATEGORY}"
    )
    return ClaimsOverTime(data=data, categories=categories, quality=quality)
