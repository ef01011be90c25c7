"""Shared utilities for pandas conversion operations."""

from typing import Any

import pandas as pd  # type: ignore


def records_frame(rows: list[dict[str, Any]], columns: list[str]) -> pd.DataFrame:
    """Build a DataFrame with a fixed column order, even when ``rows`` is empty."""
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows, columns=columns)


def to_native(value: Any) -> Any:
    """Convert pandas missing values to None and numpy scalars to Python ones."""
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        # Containers such as lists are never "missing".
        return value
    if hasattr(value, "item"):
        return value.item()
    return value
