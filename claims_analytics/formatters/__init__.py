"""Presentation formatters for claims analytics results.

- Plotly figure specifications for the claims and cohort charts
- Markdown tables for cohort matrices and data-quality summaries
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from claims_analytics.formatters.markdown_tables import (
    format_cohort_table,
    format_data_quality_table,
)
from claims_analytics.formatters.plotly_charts import (
    create_claims_over_time_chart,
    create_claims_percentage_chart,
    create_cohort_heatmap,
    write_chart_html,
)


@dataclass(frozen=True)
class ChartConfig:
    """Chart size configuration.

    Attributes
    ----------
    width:
        Chart width in pixels.
    height:
        Chart height in pixels.
    quality:
        Preset the dimensions came from.
    """

    width: int = 1000
    height: int = 450
    quality: Literal["high", "medium", "low"] = "medium"

    @classmethod
    def from_quality(cls, quality: Literal["high", "medium", "low"]) -> ChartConfig:
        """Create config from a quality preset.

        Examples
        --------
        >>> ChartConfig.from_quality("high").width
        1400
        """
        if quality == "high":
            return cls(width=1400, height=650, quality="high")
        elif quality == "low":
            return cls(width=700, height=320, quality="low")
        else:
            return cls(width=1000, height=450, quality="medium")


_DEFAULT_CHART_CONFIG = ChartConfig.from_quality("medium")


def get_chart_config() -> ChartConfig:
    """Return the current global chart configuration."""
    return _DEFAULT_CHART_CONFIG


def set_chart_config(config: ChartConfig) -> None:
    """Replace the global chart configuration."""
    global _DEFAULT_CHART_CONFIG
    _DEFAULT_CHART_CONFIG = config


__all__ = [
    "ChartConfig",
    "get_chart_config",
    "set_chart_config",
    "format_cohort_table",
    "format_data_quality_table",
    "create_claims_over_time_chart",
    "create_claims_percentage_chart",
    "create_cohort_heatmap",
    "write_chart_html",
]
