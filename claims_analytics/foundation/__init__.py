"""Foundational building blocks for claims analytics.

This package exposes the registration record, period key calculus,
exposure validity rules, product taxonomy and purchase volume entries
that the analyses are built on.
"""

from .exposure import (
    ClaimType,
    ClaimTypePolicy,
    ExposureSummary,
    calculate_exposure_days,
    filter_by_valid_exposure,
    get_policy,
    is_valid_exposure,
    summarize_exposure,
)
from .periods import TimePeriod, get_period_key, get_period_label
from .products import (
    ALL_PRODUCTS,
    OTHER,
    TRACKED_PRODUCTS,
    extract_product_type,
)
from .purchase_volume import (
    PurchaseVolume,
    PurchaseVolumeInput,
    validate_purchase_volumes,
)
from .registration import FieldData, Registration, parse_registrations

__all__ = [
    "ClaimType",
    "ClaimTypePolicy",
    "ExposureSummary",
    "calculate_exposure_days",
    "filter_by_valid_exposure",
    "get_policy",
    "is_valid_exposure",
    "summarize_exposure",
    "TimePeriod",
    "get_period_key",
    "get_period_label",
    "ALL_PRODUCTS",
    "OTHER",
    "TRACKED_PRODUCTS",
    "extract_product_type",
    "PurchaseVolume",
    "PurchaseVolumeInput",
    "validate_purchase_volumes",
    "FieldData",
    "Registration",
    "parse_registrations",
]
