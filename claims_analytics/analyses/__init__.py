"""Claims analyses: facet filtering, time series and cohort survival."""

from .aggregation import (
    ChartDataPoint,
    ClaimsOverTime,
    ClaimsPercentageSeries,
    GroupBy,
    StackedChartDataPoint,
    calculate_claims_over_time,
    calculate_claims_percentage_by_period,
)
from .cohort_survival import (
    CohortCoverage,
    CohortDataPoint,
    CohortSurvivalResult,
    calculate_cohort_survival,
    survival_rate_band,
)
from .filters import (
    Filters,
    FilterValues,
    apply_filters,
    combine_filter_values,
    extract_filter_values,
)

__all__ = [
    "ChartDataPoint",
    "ClaimsOverTime",
    "ClaimsPercentageSeries",
    "GroupBy",
    "StackedChartDataPoint",
    "calculate_claims_over_time",
    "calculate_claims_percentage_by_period",
    "CohortCoverage",
    "CohortDataPoint",
    "CohortSurvivalResult",
    "calculate_cohort_survival",
    "survival_rate_band",
    "Filters",
    "FilterValues",
    "apply_filters",
    "combine_filter_values",
    "extract_filter_values",
]
