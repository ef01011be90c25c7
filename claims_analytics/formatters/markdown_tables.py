"""Markdown table formatters for claims analytics results."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from claims_analytics.analyses.cohort_survival import CohortCoverage, CohortSurvivalResult
    from claims_analytics.foundation.exposure import ExposureSummary


def format_cohort_table(result: CohortSurvivalResult, title: str | None = None) -> str:
    """Format cohort survival rates as a markdown matrix.

    Parameters
    ----------
    result:
        Output of ``calculate_cohort_survival``.
    title:
        Optional heading placed above the table.

    Returns
    -------
    str:
        One row per cohort and one column per month since purchase. Cells
        read ``N/A`` when the cohort has no purchase volume and are blank
        for months that have not completed yet.

    Examples
    --------
    >>> print(format_cohort_table(result))  # doctest: +SKIP
    | Cohort | Volume | M0 | M1 |
    |--------|--------|----|----|
    | Jan 2024 | 100 | 98.0% | 95.0% |
    """
    if not result.points:
        return "_No cohort data for the selected range._\n"

    max_offset = max(p.months_since_purchase for p in result.points)
    header = ["Cohort", "Volume"] + [f"M{offset}" for offset in range(max_offset + 1)]
    lines = []
    if title:
        lines.append(f"## {title}\n")
    lines.append("| " + " | ".join(header) + " |")
    lines.append("|" + "|".join("-" * (len(col) + 2) for col in header) + "|")

    cohorts = sorted({p.cohort_month for p in result.points})
    for cohort in cohorts:
        points = result.for_cohort(cohort)
        cells = [""] * (max_offset + 1)
        for point in points:
            if point.has_purchase_data:
                cells[point.months_since_purchase] = f"{point.survival_rate:.1f}%"
            else:
                cells[point.months_since_purchase] = "N/A"
        volume = points[0].purchase_volume
        row = [points[0].cohort_label, f"{volume:,}" if volume else "N/A", *cells]
        lines.append("| " + " | ".join(row) + " |")

    return "\n".join(lines) + "\n"


def format_data_quality_table(summary: ExposureSummary | CohortCoverage) -> str:
    """Format the exclusion counts of an analysis as a markdown table."""
    rows = [("Total registrations", summary.total_records)]
    if hasattr(summary, "valid_records"):
        rows += [
            ("Valid registrations", summary.valid_records),
            ("Missing purchase or claim date", summary.missing_dates),
            ("Outside exposure window", summary.out_of_range),
        ]
    else:
        rows += [
            ("Eligible registrations", summary.eligible_records),
            ("Missing purchase or claim date", summary.missing_dates),
            ("Outside exposure window", summary.invalid_exposure),
            ("Untracked purchase channel", summary.untracked_channel),
            ("Other product", summary.product_mismatch),
            ("Cohort outside range", summary.outside_range),
        ]
    rows.append(("Excluded", summary.excluded_count))

    table = "| Data Quality | Count |\n|--------------|-------|\n"
    for label, count in rows:
        table += f"| {label} | {count:,} |\n"
    return table
