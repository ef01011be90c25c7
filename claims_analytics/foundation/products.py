"""Product taxonomy used for cohort analysis.

Product names on orders carry colour variants and internal suffixes
("Arctic White", "(Copy)", "LP Test"), so they are reduced to a small set
of tracked product types before joining with purchase volumes.
"""

from __future__ import annotations

import re

DENTAL_POD = "Dental Pod"
DENTAL_POD_GO = "Dental Pod Go"
DENTAL_POD_PRO = "Dental Pod Pro"
ZIMA_CASES = "Zima Go/Zima UV Case/Zima Case Air"
OTHER = "Other"

#: Product filter value meaning "every tracked product".
ALL_PRODUCTS = "All Products"

TRACKED_PRODUCTS: tuple[str, ...] = (
    DENTAL_POD,
    DENTAL_POD_GO,
    DENTAL_POD_PRO,
    ZIMA_CASES,
)

#: Product filter choices in the order the dashboard offers them.
PRODUCT_FILTER_OPTIONS: tuple[str, ...] = (
    ALL_PRODUCTS,
    DENTAL_POD_GO,
    DENTAL_POD,
    DENTAL_POD_PRO,
    ZIMA_CASES,
)

# Most specific patterns first: "Dental Pod Pro" also contains "Dental Pod".
_PRODUCT_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"Dental Pod Go", re.IGNORECASE), DENTAL_POD_GO),
    (re.compile(r"Dental Pod Pro", re.IGNORECASE), DENTAL_POD_PRO),
    (re.compile(r"Dental Pod(?!\s+(Go|Pro))", re.IGNORECASE), DENTAL_POD),
    (re.compile(r"Zima (Go|UV Case|Case Air)", re.IGNORECASE), ZIMA_CASES),
)


def extract_product_type(product_name: str | None) -> str:
    """Map a free-text product name to a tracked product type.

    Examples
    --------
    >>> extract_product_type("Dental Pod Pro Arctic White")
    'Dental Pod Pro'
    >>> extract_product_type("Dental Pod (Copy) Rose Pink")
    'Dental Pod'
    >>> extract_product_type("Widget X")
    'Other'
    """
    if not product_name:
        return OTHER
    for pattern, product_type in _PRODUCT_RULES:
        if pattern.search(product_name):
            return product_type
    return OTHER


def matches_product_filter(product_type: str, product_filter: str) -> bool:
    """Return True if a classified product type passes the product filter.

    Under :data:`ALL_PRODUCTS` only tracked products pass; untracked
    products are never part of a cohort.
    """
    if product_filter == ALL_PRODUCTS:
        return product_type in TRACKED_PRODUCTS
    return product_type == product_filter


def products_for_filter(product_filter: str) -> tuple[str, ...]:
    """Products whose purchase volumes make up the denominator for a filter."""
    if product_filter == ALL_PRODUCTS:
        return TRACKED_PRODUCTS
    return (product_filter,)
