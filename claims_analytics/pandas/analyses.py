"""Pandas DataFrame adapters for claims analysis results."""

from typing import Literal, Sequence

import numpy as np
import pandas as pd  # type: ignore

from claims_analytics.analyses.aggregation import (
    ChartDataPoint,
    ClaimsOverTime,
)
from claims_analytics.analyses.cohort_survival import (
    CohortDataPoint,
    CohortSurvivalResult,
)
from ._utils import records_frame

CHART_COLUMNS = [
    "period",
    "period_label",
    "claim_count",
    "total_exposure_days",
    "claims_percentage",
]

COHORT_COLUMNS = [
    "cohort_month",
    "cohort_label",
    "months_since_purchase",
    "claim_count",
    "purchase_volume",
    "survival_rate",
    "claim_rate",
]


def chart_points_to_dataframe(points: Sequence[ChartDataPoint]) -> pd.DataFrame:
    """Convert claims-percentage points to a DataFrame ordered by period.

    Example:
        >>> series = calculate_claims_percentage_by_period(regs, "monthly")
        >>> chart_points_to_dataframe(series.points).tail(3)
    """
    rows = [
        {
            "period": p.period,
            "period_label": p.period_label,
            "claim_count": p.claim_count,
            "total_exposure_days": p.total_exposure_days,
            "claims_percentage": p.claims_percentage,
        }
        for p in points
    ]
    return records_frame(rows, CHART_COLUMNS)


def stacked_points_to_dataframe(result: ClaimsOverTime) -> pd.DataFrame:
    """Convert a stacked claims series to a wide DataFrame.

    Args:
        result: Output of ``calculate_claims_over_time``

    Returns:
        DataFrame with ``period``, ``period_label`` and ``total`` followed by
        one integer column per category (in ``result.categories`` order).
        Periods with no merged claims get 0 in the ``Other`` column.
    """
    columns = ["period", "period_label", "total", *result.categories]
    rows = []
    for point in result.data:
        row = {
            "period": point.period,
            "period_label": point.period_label,
            "total": point.total,
        }
        for category in result.categories:
            row[category] = point.counts.get(category, 0)
        rows.append(row)
    return records_frame(rows, columns)


def other_breakdown_to_dataframe(result: ClaimsOverTime) -> pd.DataFrame:
    """Long-form DataFrame of the categories merged into ``Other`` per period."""
    rows = [
        {"period": point.period, "category": category, "count": count}
        for point in result.data
        for category, count in (point.other_breakdown or {}).items()
    ]
    return records_frame(rows, ["period", "category", "count"])


def cohort_points_to_dataframe(points: Sequence[CohortDataPoint]) -> pd.DataFrame:
    """Convert cohort survival points to a long-form DataFrame."""
    rows = [
        {
            "cohort_month": p.cohort_month,
            "cohort_label": p.cohort_label,
            "months_since_purchase": p.months_since_purchase,
            "claim_count": p.claim_count,
            "purchase_volume": p.purchase_volume,
            "survival_rate": p.survival_rate,
            "claim_rate": p.claim_rate,
        }
        for p in points
    ]
    return records_frame(rows, COHORT_COLUMNS)


def cohort_survival_matrix(
    result: CohortSurvivalResult,
    value: Literal["survival_rate", "claim_rate", "claim_count"] = "survival_rate",
) -> pd.DataFrame:
    """Pivot cohort points into a cohort × months-since-purchase matrix.

    Args:
        result: Output of ``calculate_cohort_survival``
        value: Metric placed in the cells

    Returns:
        DataFrame indexed by cohort month with one column per offset. Cells
        for months not yet complete, and rate cells of cohorts without
        purchase volume, are NaN.

    Example:
        >>> matrix = cohort_survival_matrix(result)
        >>> matrix.loc["2024-01", 3]
        97.2
    """
    df = cohort_points_to_dataframe(result.points)
    if df.empty:
        return pd.DataFrame()
    if value != "claim_count":
        df[value] = df[value].where(df["purchase_volume"] > 0, np.nan)
    matrix = df.pivot(
        index="cohort_month", columns="months_since_purchase", values=value
    )
    matrix.columns.name = "months_since_purchase"
    return matrix.sort_index()
