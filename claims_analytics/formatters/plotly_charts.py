"""Plotly chart generators for claims analytics results.

Charts are returned as JSON-serializable Plotly figure specifications so
they can be embedded by any front end. :func:`write_chart_html` renders a
specification to a standalone HTML file.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from claims_analytics.analyses.aggregation import OTHER_CATEGORY
from claims_analytics.analyses.cohort_survival import (
    LOWEST_BAND_COLOR,
    SURVIVAL_BANDS,
)

if TYPE_CHECKING:
    from claims_analytics.analyses.aggregation import (
        ClaimsOverTime,
        ClaimsPercentageSeries,
    )
    from claims_analytics.analyses.cohort_survival import CohortSurvivalResult


def _get_default_height(base_height: int | None = None) -> int:
    if base_height is not None:
        return base_height
    from claims_analytics.formatters import get_chart_config

    return get_chart_config().height


def _get_default_width(base_width: int | None = None) -> int:
    if base_width is not None:
        return base_width
    from claims_analytics.formatters import get_chart_config

    return get_chart_config().width


def _chart(fig_dict: dict[str, Any], width: int, height: int) -> dict[str, Any]:
    return {
        "plotly_json": fig_dict,
        "format": "plotly",
        "width": width,
        "height": height,
    }


def _quality_note(total: int, excluded: int) -> str:
    return f"{total - excluded:,} of {total:,} claims shown ({excluded:,} excluded)"


def create_claims_percentage_chart(series: ClaimsPercentageSeries) -> dict[str, Any]:
    """Create the claims-percentage line chart.

    Parameters
    ----------
    series:
        Output of ``calculate_claims_percentage_by_period``.

    Returns
    -------
    dict:
        ``plotly_json`` figure specification plus its dimensions.
    """
    points = series.points
    trace = {
        "type": "scatter",
        "mode": "lines+markers",
        "name": "Claims %",
        "x": [p.period_label for p in points],
        "y": [p.claims_percentage for p in points],
        "customdata": [[p.claim_count, p.total_exposure_days] for p in points],
        "line": {"color": "rgb(37, 99, 235)", "width": 2},
        "hovertemplate": (
            "%{x}<br>Claims: %{customdata[0]}<br>"
            "Exposure days: %{customdata[1]}<br>"
            "Claims %: %{y:.3f}%<extra></extra>"
        ),
    }
    width = _get_default_width()
    height = _get_default_height()
    layout = {
        "title": {
            "text": "Claims per Exposure Day",
            "x": 0.5,
            "xanchor": "center",
        },
        "xaxis": {"title": "Period"},
        "yaxis": {"title": "Claims %", "ticksuffix": "%"},
        "annotations": [
            {
                "text": _quality_note(
                    series.quality.total_records, series.quality.excluded_count
                ),
                "xref": "paper",
                "yref": "paper",
                "x": 0,
                "y": 1.08,
                "showarrow": False,
            }
        ],
        "width": width,
        "height": height,
    }
    return _chart({"data": [trace], "layout": layout}, width, height)


def create_claims_over_time_chart(result: ClaimsOverTime) -> dict[str, Any]:
    """Create the stacked claims-over-time bar chart.

    The ``Other`` series carries its per-period breakdown in the hover text.
    """
    traces = []
    for category in result.categories:
        trace: dict[str, Any] = {
            "type": "bar",
            "name": category,
            "x": [p.period_label for p in result.data],
            "y": [p.counts.get(category, 0) for p in result.data],
        }
        if category == OTHER_CATEGORY:
            trace["hovertext"] = [
                "<br>".join(
                    f"{name}: {count}"
                    for name, count in sorted(
                        (p.other_breakdown or {}).items(),
                        key=lambda item: item[1],
                        reverse=True,
                    )
                )
                for p in result.data
            ]
            trace["hovertemplate"] = "%{x}<br>Other: %{y}<br>%{hovertext}<extra></extra>"
        traces.append(trace)

    width = _get_default_width()
    height = _get_default_height()
    layout = {
        "title": {"text": "Claims Over Time", "x": 0.5, "xanchor": "center"},
        "barmode": "stack",
        "xaxis": {"title": "Period"},
        "yaxis": {"title": "Claims"},
        "legend": {"traceorder": "normal"},
        "width": width,
        "height": height,
    }
    return _chart({"data": traces, "layout": layout}, width, height)


def _survival_colorscale() -> list[list[Any]]:
    # Discrete bands mapped onto a 0-100 survival axis, lowest first.
    bounds = [0.0] + [float(bound) for bound, _ in reversed(SURVIVAL_BANDS)] + [100.0]
    colors = [LOWEST_BAND_COLOR] + [color for _, color in reversed(SURVIVAL_BANDS)]
    scale: list[list[Any]] = []
    for color, low, high in zip(colors, bounds, bounds[1:]):
        scale.append([low / 100, color])
        scale.append([high / 100, color])
    return scale


def create_cohort_heatmap(result: CohortSurvivalResult) -> dict[str, Any]:
    """Create the cohort survival heatmap.

    Rows are cohort months (newest at the bottom), columns are months since
    purchase. Cells of cohorts without purchase volume are labelled
    ``N/A`` and left uncoloured rather than shown as 100 % survival.
    """
    cohorts = sorted({p.cohort_month for p in result.points})
    labels = {p.cohort_month: p.cohort_label for p in result.points}
    max_offset = max((p.months_since_purchase for p in result.points), default=0)

    z_values: list[list[float | None]] = []
    text: list[list[str]] = []
    claims_volume: list[list[str]] = []
    for cohort in cohorts:
        row: list[float | None] = [None] * (max_offset + 1)
        row_text = [""] * (max_offset + 1)
        row_claims = [""] * (max_offset + 1)
        for point in result.for_cohort(cohort):
            offset = point.months_since_purchase
            if point.has_purchase_data:
                row[offset] = point.survival_rate
                row_text[offset] = f"{point.survival_rate:.1f}%"
                row_claims[offset] = f"{point.claim_count:,} / {point.purchase_volume:,}"
            else:
                row_text[offset] = "N/A"
                row_claims[offset] = f"{point.claim_count:,} / N/A"
        z_values.append(row)
        text.append(row_text)
        claims_volume.append(row_claims)

    heatmap_trace = {
        "type": "heatmap",
        "z": z_values,
        "x": list(range(max_offset + 1)),
        "y": [labels[c] for c in cohorts],
        "text": text,
        "customdata": claims_volume,
        "texttemplate": "%{text}",
        "colorscale": _survival_colorscale(),
        "colorbar": {"title": "Survival %", "ticksuffix": "%"},
        "hovertemplate": (
            "Cohort: %{y}<br>Month: %{x}<br>Survival: %{text}<br>"
            "Claims / volume: %{customdata}<extra></extra>"
        ),
        "zmin": 0,
        "zmax": 100,
    }

    base_height = _get_default_height()
    dynamic_height = max(base_height, min(len(cohorts) * 30, base_height * 2))
    width = _get_default_width()
    layout = {
        "title": {
            "text": f"Cohort Survival (complete months through {result.last_complete_month})",
            "x": 0.5,
            "xanchor": "center",
        },
        "xaxis": {"title": "Months Since Purchase", "tickmode": "linear", "dtick": 1},
        "yaxis": {"title": "Purchase Cohort", "autorange": "reversed"},
        "width": width,
        "height": dynamic_height,
    }
    return _chart({"data": [heatmap_trace], "layout": layout}, width, dynamic_height)


def write_chart_html(chart: dict[str, Any], path: Path) -> Path:
    """Render a chart specification to a standalone HTML file."""
    import plotly.graph_objects as go

    fig = go.Figure(chart["plotly_json"])
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.write_html(str(path), include_plotlyjs="cdn")
    return path
