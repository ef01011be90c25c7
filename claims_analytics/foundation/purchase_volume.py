"""Monthly purchase volumes per product.

Purchase volumes are entered by hand (or bulk loaded from sales exports)
and stored elsewhere as ``{yearMonth, product, purchaseCount}`` documents.
They form the denominator of cohort claim rates, and the join is on exact
string equality of ``yearMonth`` and ``product``.

Input is validated with pydantic at the edge so the analytics engine can
assume well-formed, non-negative counts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from claims_analytics.foundation.periods import is_month_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseVolume:
    """Units of one product sold in one calendar month.

    Attributes
    ----------
    year_month:
        Calendar month as ``YYYY-MM``.
    product:
        Tracked product type (see :mod:`claims_analytics.foundation.products`).
    purchase_count:
        Units sold, never negative.
    """

    year_month: str
    product: str
    purchase_count: int

    @property
    def key(self) -> tuple[str, str]:
        return self.year_month, self.product

    def to_dict(self) -> dict[str, Any]:
        """Return the persisted document shape."""
        return {
            "yearMonth": self.year_month,
            "product": self.product,
            "purchaseCount": self.purchase_count,
        }

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PurchaseVolume:
        """Validate a persisted document and build a volume entry."""
        validated = PurchaseVolumeInput.model_validate(raw)
        return cls(
            year_month=validated.year_month,
            product=validated.product,
            purchase_count=validated.purchase_count,
        )


class PurchaseVolumeInput(BaseModel):
    """Caller-side validation of a purchase volume document."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    year_month: str = Field(alias="yearMonth", description="Calendar month, YYYY-MM")
    product: str = Field(min_length=1, description="Tracked product type")
    purchase_count: int = Field(
        alias="purchaseCount", ge=0, description="Units sold in the month"
    )

    @field_validator("year_month")
    @classmethod
    def _check_year_month(cls, value: str) -> str:
        if not is_month_key(value):
            raise ValueError(f"yearMonth must be formatted YYYY-MM, got {value!r}")
        return value


def validate_purchase_volumes(records: Iterable[Mapping[str, Any]]) -> list[PurchaseVolume]:
    """Validate raw purchase volume documents.

    Raises
    ------
    pydantic.ValidationError
        If any document is malformed or carries a negative count.
    """
    volumes = [PurchaseVolume.from_mapping(raw) for raw in records]
    logger.debug("Validated %d purchase volume entries", len(volumes))
    return volumes


def volumes_from_monthly_counts(
    product: str, counts: Mapping[str, int], skip_zero: bool = False
) -> list[PurchaseVolume]:
    """Build volume entries for one product from a ``{yearMonth: count}`` mapping.

    Examples
    --------
    >>> volumes = volumes_from_monthly_counts("Dental Pod", {"2024-01": 100})
    >>> volumes[0].to_dict()
    {'yearMonth': '2024-01', 'product': 'Dental Pod', 'purchaseCount': 100}
    """
    return validate_purchase_volumes(
        {"yearMonth": year_month, "product": product, "purchaseCount": count}
        for year_month, count in sorted(counts.items())
        if not (skip_zero and count == 0)
    )


def build_volume_lookup(volumes: Iterable[PurchaseVolume]) -> dict[tuple[str, str], int]:
    """Index volumes by ``(yearMonth, product)``; later entries win."""
    lookup: dict[tuple[str, str], int] = {}
    for volume in volumes:
        lookup[volume.key] = volume.purchase_count
    return lookup


def upsert_purchase_volume(
    volumes: Iterable[PurchaseVolume], entry: PurchaseVolume
) -> list[PurchaseVolume]:
    """Return a new list with ``entry`` replacing any entry for the same key."""
    updated = [volume for volume in volumes if volume.key != entry.key]
    updated.append(entry)
    updated.sort(key=lambda volume: volume.key)
    return updated
