"""Command line entry points for the claims analytics toolkit."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Sequence

import structlog
from pydantic import ValidationError

from claims_analytics.analyses.aggregation import (
    DEFAULT_TOP_N,
    GroupBy,
    calculate_claims_over_time,
    calculate_claims_percentage_by_period,
)
from claims_analytics.analyses.cohort_survival import calculate_cohort_survival
from claims_analytics.analyses.filters import (
    Filters,
    apply_filters,
    combine_filter_values,
    extract_filter_values,
)
from claims_analytics.foundation.exposure import ClaimType
from claims_analytics.foundation.periods import (
    TimePeriod,
    default_cohort_range,
    is_month_key,
)
from claims_analytics.foundation.products import ALL_PRODUCTS, PRODUCT_FILTER_OPTIONS
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
from claims_analytics.loaders import load_purchase_volumes, load_registrations
from claims_analytics.logging_config import configure_logging

logger = structlog.get_logger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _month(value: str) -> str:
    if not is_month_key(value):
        raise argparse.ArgumentTypeError(f"expected YYYY-MM, got {value!r}")
    return value


def _as_of(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--claim-type",
        choices=[item.value for item in ClaimType],
        default=ClaimType.WARRANTY.value,
        help="Claim type being analysed (default: warranty).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Write the result to this file instead of stdout.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default="WARNING",
        help="Logging level (default: WARNING).",
    )
    parser.add_argument(
        "--log-json", action="store_true", help="Emit log events as JSON lines."
    )


def _add_facet_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("facet filters (repeatable, AND across facets)")
    group.add_argument("--product-name", dest="product_names", action="append")
    group.add_argument("--sku", dest="skus", action="append")
    group.add_argument("--serial-number", dest="serial_numbers", action="append")
    group.add_argument("--reason", dest="reasons", action="append")
    group.add_argument("--sub-reason", dest="sub_reasons", action="append")
    group.add_argument("--purchase-channel", dest="purchase_channels", action="append")


def _filters_from_args(args: argparse.Namespace) -> Filters:
    return Filters(
        product_names=args.product_names,
        skus=args.skus,
        serial_numbers=args.serial_numbers,
        reasons=args.reasons,
        sub_reasons=args.sub_reasons,
        purchase_channels=args.purchase_channels,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claims-analytics",
        description="Claims rate, stacked claims and cohort survival analytics.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    facets = subparsers.add_parser(
        "filter-values", help="List the facet values present in registrations."
    )
    facets.add_argument("inputs", type=Path, nargs="+", help="Registration JSON files")
    _add_common_arguments(facets)

    percentage = subparsers.add_parser(
        "claims-percentage", help="Claims as a percentage of exposure days."
    )
    percentage.add_argument("input", type=Path, help="Registration JSON file")
    percentage.add_argument(
        "--period",
        choices=[TimePeriod.WEEKLY.value, TimePeriod.MONTHLY.value],
        default=TimePeriod.MONTHLY.value,
    )
    percentage.add_argument("--html", type=Path, help="Also write the chart as HTML.")
    _add_common_arguments(percentage)
    _add_facet_arguments(percentage)

    over_time = subparsers.add_parser(
        "claims-over-time", help="Claim counts per period, stacked by a category."
    )
    over_time.add_argument("input", type=Path, help="Registration JSON file")
    over_time.add_argument(
        "--period",
        choices=[item.value for item in TimePeriod],
        default=TimePeriod.MONTHLY.value,
    )
    over_time.add_argument(
        "--group-by",
        choices=[item.value for item in GroupBy],
        default=GroupBy.NONE.value,
    )
    over_time.add_argument("--top-n", type=int, default=DEFAULT_TOP_N)
    over_time.add_argument("--html", type=Path, help="Also write the chart as HTML.")
    _add_common_arguments(over_time)
    _add_facet_arguments(over_time)

    cohort = subparsers.add_parser(
        "cohort-survival", help="Cumulative claim and survival rates by purchase month."
    )
    cohort.add_argument("input", type=Path, help="Registration JSON file")
    cohort.add_argument(
        "--volumes", type=Path, required=True, help="Purchase volume CSV or JSON file"
    )
    cohort.add_argument(
        "--product", choices=PRODUCT_FILTER_OPTIONS, default=ALL_PRODUCTS
    )
    cohort.add_argument("--start-month", type=_month)
    cohort.add_argument("--end-month", type=_month)
    cohort.add_argument(
        "--as-of",
        type=_as_of,
        help="Reference date for the complete-month cutoff (default: today).",
    )
    cohort.add_argument(
        "--format", choices=["json", "markdown"], default="json", dest="output_format"
    )
    cohort.add_argument("--html", type=Path, help="Also write the heatmap as HTML.")
    _add_common_arguments(cohort)

    return parser


def _emit(payload: Any, output: Path | None) -> None:
    text = payload if isinstance(payload, str) else json.dumps(payload, indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        logger.info("result_written", path=str(output))
    else:  # stdout fallback enables piping in shell usage.
        sys.stdout.write(text if text.endswith("\n") else text + "\n")


def _quality_dict(summary: Any) -> dict[str, int]:
    payload = asdict(summary)
    payload["excluded_count"] = summary.excluded_count
    return payload


def _run_filter_values(args: argparse.Namespace) -> int:
    values = [
        extract_filter_values(load_registrations(path, args.claim_type))
        for path in args.inputs
    ]
    _emit(combine_filter_values(values).as_dict(), args.output)
    return 0


def _run_claims_percentage(args: argparse.Namespace) -> int:
    registrations = apply_filters(
        load_registrations(args.input, args.claim_type), _filters_from_args(args)
    )
    series = calculate_claims_percentage_by_period(
        registrations, args.period, args.claim_type
    )
    logger.info(
        "claims_percentage_computed",
        periods=len(series.points),
        excluded=series.quality.excluded_count,
    )
    _emit(
        {
            "data": [point.as_dict() for point in series.points],
            "quality": _quality_dict(series.quality),
        },
        args.output,
    )
    if args.html:
        write_chart_html(create_claims_percentage_chart(series), args.html)
    return 0


def _run_claims_over_time(args: argparse.Namespace) -> int:
    if args.top_n < 1:
        logger.error("invalid_top_n", top_n=args.top_n)
        return 1
    registrations = apply_filters(
        load_registrations(args.input, args.claim_type), _filters_from_args(args)
    )
    result = calculate_claims_over_time(
        registrations, args.period, args.group_by, args.claim_type, top_n=args.top_n
    )
    logger.info(
        "claims_over_time_computed",
        periods=len(result.data),
        categories=len(result.categories),
        excluded=result.quality.excluded_count,
    )
    _emit(
        {
            "data": [point.as_dict() for point in result.data],
            "categories": result.categories,
            "quality": _quality_dict(result.quality),
        },
        args.output,
    )
    if args.html:
        write_chart_html(create_claims_over_time_chart(result), args.html)
    return 0


def _run_cohort_survival(args: argparse.Namespace) -> int:
    as_of = args.as_of or date.today()
    start_month, end_month = args.start_month, args.end_month
    if start_month is None or end_month is None:
        default_range = default_cohort_range(as_of)
        if default_range is None:
            logger.error("no_complete_months", as_of=as_of.isoformat())
            return 1
        start_month = start_month or default_range[0]
        end_month = end_month or default_range[1]
    if start_month > end_month:
        logger.error("invalid_month_range", start=start_month, end=end_month)
        return 1

    registrations = load_registrations(args.input, args.claim_type)
    volumes = load_purchase_volumes(args.volumes)
    result = calculate_cohort_survival(
        registrations,
        volumes,
        args.product,
        start_month,
        end_month,
        args.claim_type,
        as_of=as_of,
    )
    logger.info(
        "cohort_survival_computed",
        points=len(result.points),
        eligible=result.coverage.eligible_records,
        excluded=result.coverage.excluded_count,
        last_complete_month=result.last_complete_month,
    )

    if args.output_format == "markdown":
        title = f"{args.product} {args.claim_type} survival, {start_month} to {end_month}"
        _emit(
            format_cohort_table(result, title=title)
            + "\n"
            + format_data_quality_table(result.coverage),
            args.output,
        )
    else:
        _emit(
            {
                "data": [point.as_dict() for point in result.points],
                "coverage": _quality_dict(result.coverage),
                "lastCompleteMonth": result.last_complete_month,
            },
            args.output,
        )
    if args.html:
        write_chart_html(create_cohort_heatmap(result), args.html)
    return 0


_COMMANDS = {
    "filter-values": _run_filter_values,
    "claims-percentage": _run_claims_percentage,
    "claims-over-time": _run_claims_over_time,
    "cohort-survival": _run_cohort_survival,
}


def run(argv: Sequence[str] | None = None) -> int:
    """Parse arguments and run one subcommand, returning the exit code."""
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level, json_output=args.log_json)
    try:
        return _COMMANDS[args.command](args)
    except (OSError, ValueError, TypeError, ValidationError) as exc:
        logger.error("command_failed", command=args.command, error=str(exc))
        return 1


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main()
