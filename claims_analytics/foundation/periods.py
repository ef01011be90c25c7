"""Period key calculus for claim time series and cohort months.

Period keys are plain strings that sort lexicographically in chronological
order, so callers can use ``sorted()`` on them directly:

- daily: ``YYYY-MM-DD``
- weekly: ``YYYY-Www`` (ISO-8601 week numbering)
- monthly: ``YYYY-MM``
- yearly: ``YYYY``

Quick Start
-----------
>>> from datetime import datetime, timezone
>>> from claims_analytics.foundation.periods import (
...     TimePeriod, get_period_key, get_period_label,
... )
>>> get_period_key(datetime(2024, 12, 30, tzinfo=timezone.utc), TimePeriod.WEEKLY)
'2025-W01'
>>> get_period_label("2025-W01", TimePeriod.WEEKLY)
'Dec 30, 2024'
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Iterator

MONTH_NAMES = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

#: First month for which purchase volumes are tracked.
FIRST_TRACKED_MONTH = "2023-01"

_MONTH_KEY = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class TimePeriod(str, Enum):
    """Supported bucketing granularities for claim time series."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def _as_utc_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def iso_week(value: date | datetime) -> tuple[int, int]:
    """Return ``(iso_year, week)`` for the given date.

    The week containing the date's Thursday decides the year, so the ISO
    year can differ from the calendar year around January 1st.
    """
    iso = _as_utc_date(value).isocalendar()
    return iso[0], iso[1]


def first_day_of_iso_week(year: int, week: int) -> date:
    """Return the Monday that starts ISO week ``week`` of ``year``."""
    return date.fromisocalendar(year, week, 1)


def get_period_key(value: date | datetime, period: TimePeriod) -> str:
    """Return the sortable period key for ``value``."""
    day = _as_utc_date(value)
    period = TimePeriod(period)
    if period is TimePeriod.DAILY:
        return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"
    if period is TimePeriod.WEEKLY:
        year, week = iso_week(day)
        return f"{year:04d}-W{week:02d}"
    if period is TimePeriod.MONTHLY:
        return f"{day.year:04d}-{day.month:02d}"
    return f"{day.year:04d}"


def get_period_label(key: str, period: TimePeriod) -> str:
    """Return the display label for a period key.

    Weekly keys are rendered as the calendar date of the Monday that opens
    the ISO week.
    """
    period = TimePeriod(period)
    if period is TimePeriod.DAILY:
        year, month, day = key.split("-")
        return f"{MONTH_NAMES[int(month) - 1]} {int(day)}, {year}"
    if period is TimePeriod.WEEKLY:
        year, week = key.split("-W")
        monday = first_day_of_iso_week(int(year), int(week))
        return f"{MONTH_NAMES[monday.month - 1]} {monday.day}, {monday.year}"
    if period is TimePeriod.MONTHLY:
        year, month = key.split("-")
        return f"{MONTH_NAMES[int(month) - 1]} {year}"
    return key


def is_month_key(value: str) -> bool:
    """Return True if ``value`` is a well-formed ``YYYY-MM`` key."""
    return bool(_MONTH_KEY.match(value))


def parse_month(key: str) -> tuple[int, int]:
    """Split a ``YYYY-MM`` key into ``(year, month)``."""
    year, month = key.split("-")
    return int(year), int(month)


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def add_months(key: str, months: int) -> str:
    """Shift a ``YYYY-MM`` key by ``months`` calendar months."""
    year, month = parse_month(key)
    index = year * 12 + (month - 1) + months
    return format_month(index // 12, index % 12 + 1)


def months_between(start: date | datetime, end: date | datetime) -> int:
    """Whole calendar months from ``start`` to ``end``, ignoring day-of-month."""
    start_day = _as_utc_date(start)
    end_day = _as_utc_date(end)
    return (end_day.year - start_day.year) * 12 + (end_day.month - start_day.month)


def iter_months(start_month: str, end_month: str) -> Iterator[str]:
    """Yield every ``YYYY-MM`` key from ``start_month`` to ``end_month`` inclusive."""
    current = start_month
    while current <= end_month:
        yield current
        current = add_months(current, 1)


def last_complete_month(as_of: date | datetime) -> str:
    """Return the most recent calendar month that has fully elapsed at ``as_of``."""
    current = get_period_key(as_of, TimePeriod.MONTHLY)
    return add_months(current, -1)


def available_cohort_months(
    as_of: date | datetime, first_month: str = FIRST_TRACKED_MONTH
) -> list[str]:
    """List every complete month from ``first_month`` up to ``as_of``."""
    return list(iter_months(first_month, last_complete_month(as_of)))


def default_cohort_range(
    as_of: date | datetime, span: int = 6, first_month: str = FIRST_TRACKED_MONTH
) -> tuple[str, str] | None:
    """Return the ``(start, end)`` range covering the last ``span`` complete months.

    Returns ``None`` when no complete month is available yet.
    """
    months = available_cohort_months(as_of, first_month)
    if not months:
        return None
    return months[max(0, len(months) - span)], months[-1]
