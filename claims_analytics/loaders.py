"""Loading of registration and purchase volume snapshots from disk.

Registrations are read from JSON in any of the shapes the ingestion side
writes: a bare list, the static snapshot document
(``warrantyRegistrations`` / ``returnRegistrations``) or the cache
document (``registrationsByForm``). Purchase volumes are read from CSV or
JSON and validated before use.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd  # type: ignore

from claims_analytics.foundation.exposure import ClaimType
from claims_analytics.foundation.purchase_volume import (
    PurchaseVolume,
    validate_purchase_volumes,
)
from claims_analytics.foundation.registration import Registration, parse_registrations
from claims_analytics.pandas.frames import dataframe_to_purchase_volumes

logger = logging.getLogger(__name__)

MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM

_SNAPSHOT_KEYS = {
    ClaimType.WARRANTY: "warrantyRegistrations",
    ClaimType.RETURN: "returnRegistrations",
}

_FORM_SLUGS = {
    ClaimType.WARRANTY: "warranty-claim",
    ClaimType.RETURN: "return-claim",
}


def _read_json(path: Path) -> Any:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    with path.open("r", encoding="utf-8") as fh:
        try:
            return json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Input file {resolved} is not valid JSON: {exc}") from exc


def extract_raw_registrations(
    payload: Any, claim_type: ClaimType | str | None = None
) -> list[dict[str, Any]]:
    """Pull the raw registration list out of a loaded JSON document.

    Parameters
    ----------
    payload:
        Parsed JSON: a list of records, a snapshot document or a cache
        document.
    claim_type:
        Selects ``warrantyRegistrations`` or ``returnRegistrations`` from a
        snapshot document, and the ``warranty-claim`` or ``return-claim``
        form from a cache document. Required for the snapshot shape; a
        cache document read without it is flattened across every form.
    """
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        raise TypeError(
            "Expected a list or object of registrations",
            {"type": type(payload).__name__},
        )

    if "registrationsByForm" in payload:
        by_form = payload["registrationsByForm"] or {}
        if claim_type is not None:
            return list(by_form.get(_FORM_SLUGS[ClaimType(claim_type)]) or [])
        records: list[dict[str, Any]] = []
        for form_slug, form_records in by_form.items():
            logger.debug("Form %s: %d registrations", form_slug, len(form_records))
            records.extend(form_records)
        return records

    if any(key in payload for key in _SNAPSHOT_KEYS.values()):
        if claim_type is None:
            raise ValueError(
                "claim_type is required to read a warranty/return snapshot document"
            )
        return list(payload.get(_SNAPSHOT_KEYS[ClaimType(claim_type)]) or [])

    raise ValueError(
        "Unrecognised registrations document",
        {"keys": sorted(payload)[:10]},
    )


def load_registrations(
    path: Path, claim_type: ClaimType | str | None = None
) -> list[Registration]:
    """Load and parse registrations from a JSON file."""
    records = extract_raw_registrations(_read_json(path), claim_type)
    registrations = parse_registrations(records)
    logger.info(f"Loaded {len(registrations)} registrations from {path}")
    return registrations


def load_purchase_volumes(path: Path) -> list[PurchaseVolume]:
    """Load purchase volumes from CSV or JSON.

    CSV files need ``yearMonth``, ``product`` and ``purchaseCount`` columns.
    JSON files hold either a list of volume documents or the stored
    ``{"volumes": [...]}`` document.

    Raises
    ------
    ValueError
        If the file shape is not recognised.
    pydantic.ValidationError
        If any entry is malformed (e.g. a negative count).
    """
    if path.suffix.lower() == ".csv":
        df = pd.read_csv(path, dtype={"yearMonth": str, "product": str})
        volumes = dataframe_to_purchase_volumes(df)
    else:
        payload = _read_json(path)
        if isinstance(payload, dict):
            payload = payload.get("volumes")
        if not isinstance(payload, list):
            raise ValueError(
                "Expected a list of purchase volumes or a {'volumes': [...]} document"
            )
        volumes = validate_purchase_volumes(payload)

    logger.info(f"Loaded {len(volumes)} purchase volume entries from {path}")
    return volumes
