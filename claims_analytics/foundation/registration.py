"""Registration record definitions for warranty and return claims.

Registrations arrive from the claims vendor as loosely-typed JSON objects.
This module maps them onto an immutable, typed record so the analytics
code never has to reach into raw dictionaries. The open ``fieldData``
mapping is reduced to the handful of form fields the dashboard uses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

logger = logging.getLogger(__name__)

#: Form-field slug holding the primary claim reason.
REASON_FIELD = "reason-for-claim"
#: Form-field slug holding the claim sub-reason.
SUB_REASON_FIELD = "reason-for-claim57"
#: Form-field slug holding the store/channel the product was bought from.
PURCHASE_CHANNEL_FIELD = "where-did-you-purchase-this-product-from-"

#: Raw keys that may carry the purchase timestamp, in order of preference.
PURCHASE_TIMESTAMP_KEYS = ("shopifyOrderCreatedAt", "purchaseDate")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a vendor timestamp into a timezone-aware UTC datetime.

    Accepts ISO-8601 strings (with a trailing ``Z`` or an explicit offset)
    and datetime instances. Naive values are interpreted as UTC. Missing or
    unparseable values return ``None``.

    Examples
    --------
    >>> parse_timestamp("2024-01-15T10:00:00Z").isoformat()
    '2024-01-15T10:00:00+00:00'
    >>> parse_timestamp("not a date") is None
    True
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


@dataclass(frozen=True)
class FieldData:
    """Typed view over the form fields used for faceting.

    Attributes
    ----------
    reason:
        Value of the ``reason-for-claim`` field.
    sub_reason:
        Value of the ``reason-for-claim57`` field.
    purchase_channel:
        Value of the ``where-did-you-purchase-this-product-from-`` field.
    """

    reason: str | None = None
    sub_reason: str | None = None
    purchase_channel: str | None = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> FieldData:
        if not raw:
            return cls()
        return cls(
            reason=_text(raw.get(REASON_FIELD)),
            sub_reason=_text(raw.get(SUB_REASON_FIELD)),
            purchase_channel=_text(raw.get(PURCHASE_CHANNEL_FIELD)),
        )

    def as_dict(self) -> dict[str, str]:
        """Return the fields keyed by their form slugs, omitting blanks."""
        payload = {
            REASON_FIELD: self.reason,
            SUB_REASON_FIELD: self.sub_reason,
            PURCHASE_CHANNEL_FIELD: self.purchase_channel,
        }
        return {key: value for key, value in payload.items() if value}


@dataclass(frozen=True)
class Registration:
    """A single warranty or return registration.

    Attributes
    ----------
    id:
        Vendor identifier (string or number).
    product_name:
        Free-text product name as entered on the order.
    product_sku:
        Product SKU.
    serial_numbers:
        Serial numbers registered with the claim.
    purchased_at:
        When the product was bought, or ``None`` if the order is unknown.
    created_at:
        When the claim was filed.
    field_data:
        Typed lookup of the reason and channel form fields.
    """

    id: str | int
    product_name: str | None = None
    product_sku: str | None = None
    serial_numbers: tuple[str, ...] = ()
    purchased_at: datetime | None = None
    created_at: datetime | None = None
    field_data: FieldData = field(default_factory=FieldData)

    @property
    def reason(self) -> str | None:
        return self.field_data.reason

    @property
    def sub_reason(self) -> str | None:
        return self.field_data.sub_reason

    @property
    def purchase_channel(self) -> str | None:
        return self.field_data.purchase_channel

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> Registration:
        """Build a registration from a raw vendor record.

        Raises
        ------
        ValueError
            If the record has no ``id``.
        TypeError
            If ``fieldData`` is present but not a mapping.
        """
        if raw.get("id") is None or raw.get("id") == "":
            raise ValueError("Registration record missing id", {"record": dict(raw)})

        purchased_at = None
        for key in PURCHASE_TIMESTAMP_KEYS:
            purchased_at = parse_timestamp(raw.get(key))
            if purchased_at is not None:
                break

        field_data = raw.get("fieldData")
        if field_data is not None and not isinstance(field_data, Mapping):
            raise TypeError(
                "fieldData must be a mapping if provided",
                {"id": raw["id"], "value": field_data},
            )

        serials = raw.get("serialNumbers") or ()
        if isinstance(serials, str):
            serials = (serials,)
        return cls(
            id=raw["id"],
            product_name=_text(raw.get("productName")),
            product_sku=_text(raw.get("productSku")),
            serial_numbers=tuple(str(sn) for sn in serials if sn),
            purchased_at=purchased_at,
            created_at=parse_timestamp(raw.get("createdAt")),
            field_data=FieldData.from_mapping(field_data),
        )

    def to_serialisable(self) -> dict[str, Any]:
        """Return a JSON-serialisable dict in the vendor's key style."""
        return {
            "id": self.id,
            "productName": self.product_name,
            "productSku": self.product_sku,
            "serialNumbers": list(self.serial_numbers),
            "shopifyOrderCreatedAt": (
                self.purchased_at.isoformat() if self.purchased_at else None
            ),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "fieldData": self.field_data.as_dict(),
        }


def parse_registrations(records: Iterable[Mapping[str, Any]]) -> list[Registration]:
    """Convert raw vendor records into :class:`Registration` instances.

    Raises
    ------
    ValueError
        If any record is missing an ``id``; the index is added to the error.
    """
    registrations: list[Registration] = []
    for idx, raw in enumerate(records):
        try:
            registrations.append(Registration.from_mapping(raw))
        except (ValueError, TypeError) as exc:
            raise type(exc)(f"Invalid registration at index {idx}: {exc.args[0]}") from exc

    missing_purchase = sum(1 for reg in registrations if reg.purchased_at is None)
    logger.debug(
        "Parsed %d registrations (%d without purchase timestamp)",
        len(registrations),
        missing_purchase,
    )
    return registrations
