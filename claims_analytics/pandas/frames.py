"""Pandas DataFrame adapters for claims registrations and purchase volumes."""

from typing import List, Sequence

import pandas as pd  # type: ignore

from claims_analytics.foundation.purchase_volume import (
    PurchaseVolume,
    validate_purchase_volumes,
)
from claims_analytics.foundation.registration import Registration
from ._utils import records_frame, to_native

REGISTRATION_COLUMNS = [
    "id",
    "product_name",
    "product_sku",
    "serial_numbers",
    "purchased_at",
    "created_at",
    "reason",
    "sub_reason",
    "purchase_channel",
]

PURCHASE_VOLUME_COLUMNS = ["yearMonth", "product", "purchaseCount"]


def registrations_to_dataframe(registrations: Sequence[Registration]) -> pd.DataFrame:
    """Convert registrations to a flat DataFrame.

    Args:
        registrations: Parsed registrations

    Returns:
        DataFrame with one row per registration and the columns in
        ``REGISTRATION_COLUMNS``; serial numbers stay as a list per row.

    Example:
        >>> regs = parse_registrations(raw_records)
        >>> df = registrations_to_dataframe(regs)
        >>> df.groupby("purchase_channel").size()
    """
    rows = [
        {
            "id": reg.id,
            "product_name": reg.product_name,
            "product_sku": reg.product_sku,
            "serial_numbers": list(reg.serial_numbers),
            "purchased_at": reg.purchased_at,
            "created_at": reg.created_at,
            "reason": reg.reason,
            "sub_reason": reg.sub_reason,
            "purchase_channel": reg.purchase_channel,
        }
        for reg in registrations
    ]
    return records_frame(rows, REGISTRATION_COLUMNS)


def purchase_volumes_to_dataframe(volumes: Sequence[PurchaseVolume]) -> pd.DataFrame:
    """Convert purchase volumes to a DataFrame in the persisted column names."""
    rows = [volume.to_dict() for volume in volumes]
    df = records_frame(rows, PURCHASE_VOLUME_COLUMNS)
    return df.sort_values(["yearMonth", "product"]).reset_index(drop=True)


def dataframe_to_purchase_volumes(df: pd.DataFrame) -> List[PurchaseVolume]:
    """Convert a DataFrame of purchase volumes back to validated entries.

    Args:
        df: DataFrame with ``yearMonth``, ``product`` and ``purchaseCount``
            columns (extra columns are ignored)

    Returns:
        List of PurchaseVolume entries

    Raises:
        ValueError: If a required column is missing
        pydantic.ValidationError: If any row is malformed
    """
    missing = [col for col in PURCHASE_VOLUME_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Purchase volume frame missing columns: {missing}")

    records = [
        {
            "yearMonth": str(row["yearMonth"]),
            "product": str(row["product"]),
            "purchaseCount": to_native(row["purchaseCount"]),
        }
        for row in df[PURCHASE_VOLUME_COLUMNS].to_dict(orient="records")
    ]
    return validate_purchase_volumes(records)
