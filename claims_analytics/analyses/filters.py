"""Facet extraction and conjunctive filtering of registrations.

The dashboard offers six facets (product name, SKU, serial number, claim
reason, sub-reason and purchase channel). Facet values are collected from
the loaded registrations and a selection narrows the record set; each
non-empty selection must match (AND across facets, OR within a facet).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Iterable, Sequence

from claims_analytics.foundation.registration import Registration


@dataclass(frozen=True)
class FilterValues:
    """Distinct facet values present in a record set, each sorted."""

    product_names: list[str] = field(default_factory=list)
    skus: list[str] = field(default_factory=list)
    serial_numbers: list[str] = field(default_factory=list)
    reasons: list[str] = field(default_factory=list)
    sub_reasons: list[str] = field(default_factory=list)
    purchase_channels: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, list[str]]:
        return {
            "productNames": list(self.product_names),
            "skus": list(self.skus),
            "serialNumbers": list(self.serial_numbers),
            "reasons": list(self.reasons),
            "subReasons": list(self.sub_reasons),
            "purchaseChannels": list(self.purchase_channels),
        }


@dataclass(frozen=True)
class Filters:
    """Facet selections. ``None`` or an empty sequence imposes no constraint."""

    product_names: Sequence[str] | None = None
    skus: Sequence[str] | None = None
    serial_numbers: Sequence[str] | None = None
    reasons: Sequence[str] | None = None
    sub_reasons: Sequence[str] | None = None
    purchase_channels: Sequence[str] | None = None

    def is_empty(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))


def extract_filter_values(registrations: Iterable[Registration]) -> FilterValues:
    """Collect the distinct non-empty facet values of ``registrations``."""
    product_names: set[str] = set()
    skus: set[str] = set()
    serial_numbers: set[str] = set()
    reasons: set[str] = set()
    sub_reasons: set[str] = set()
    channels: set[str] = set()

    for reg in registrations:
        if reg.product_name:
            product_names.add(reg.product_name)
        if reg.product_sku:
            skus.add(reg.product_sku)
        serial_numbers.update(sn for sn in reg.serial_numbers if sn)
        if reg.reason:
            reasons.add(reg.reason)
        if reg.sub_reason:
            sub_reasons.add(reg.sub_reason)
        if reg.purchase_channel:
            channels.add(reg.purchase_channel)

    return FilterValues(
        product_names=sorted(product_names),
        skus=sorted(skus),
        serial_numbers=sorted(serial_numbers),
        reasons=sorted(reasons),
        sub_reasons=sorted(sub_reasons),
        purchase_channels=sorted(channels),
    )


def _matches(value: str | None, selection: Sequence[str] | None) -> bool:
    if not selection:
        return True
    return value is not None and value in selection


def _matches_registration(reg: Registration, filters: Filters) -> bool:
    if not _matches(reg.product_name, filters.product_names):
        return False
    if not _matches(reg.product_sku, filters.skus):
        return False
    if filters.serial_numbers and not any(
        sn in filters.serial_numbers for sn in reg.serial_numbers
    ):
        return False
    if not _matches(reg.reason, filters.reasons):
        return False
    if not _matches(reg.sub_reason, filters.sub_reasons):
        return False
    return _matches(reg.purchase_channel, filters.purchase_channels)


def apply_filters(
    registrations: Iterable[Registration], filters: Filters
) -> list[Registration]:
    """Return the registrations matching every non-empty facet, in input order.

    Examples
    --------
    >>> reg = Registration(id=1, product_name="A", product_sku="Y")
    >>> apply_filters([reg], Filters(product_names=["A"], skus=["X"]))
    []
    """
    return [reg for reg in registrations if _matches_registration(reg, filters)]


def combine_filter_values(values: Iterable[FilterValues]) -> FilterValues:
    """Merge facet values from several record sets (e.g. warranty and return)."""
    merged: dict[str, set[str]] = {f.name: set() for f in fields(FilterValues)}
    for item in values:
        for name, bucket in merged.items():
            bucket.update(getattr(item, name))
    return FilterValues(**{name: sorted(bucket) for name, bucket in merged.items()})
