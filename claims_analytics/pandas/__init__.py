"""Pandas DataFrame adapters for claims analytics components."""

from .analyses import (
    chart_points_to_dataframe,
    cohort_points_to_dataframe,
    cohort_survival_matrix,
    other_breakdown_to_dataframe,
    stacked_points_to_dataframe,
)
from .frames import (
    dataframe_to_purchase_volumes,
    purchase_volumes_to_dataframe,
    registrations_to_dataframe,
)

__all__ = [
    # Analysis results
    "chart_points_to_dataframe",
    "cohort_points_to_dataframe",
    "cohort_survival_matrix",
    "other_breakdown_to_dataframe",
    "stacked_points_to_dataframe",
    # Inputs
    "dataframe_to_purchase_volumes",
    "purchase_volumes_to_dataframe",
    "registrations_to_dataframe",
]
