"""Coercion of loosely-typed model output fields into ExtractedItem / ParsedBill values."""
from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

# Canonical key first, then accepted alternates.
NAME_KEYS = ("medicine_name", "medicineName", "productName", "product_name")
BATCH_KEYS = ("batch_number", "batchNumber")
EXPIRY_KEYS = ("expiry_date", "expiryDate")
QUANTITY_KEYS = ("quantity",)
MRP_KEYS = ("mrp",)
RATE_KEYS = ("rate",)

INVOICE_NUMBER_KEYS = ("invoiceNumber", "invoice_number")
INVOICE_DATE_KEYS = ("invoiceDate", "invoice_date")
SUPPLIER_KEYS = ("supplierName", "supplier_name")
TOTAL_KEYS = ("totalAmount", "total_amount")


def first_present(data: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Value of the first key whose value is truthy (0, "" and None fall through)."""
    for k in keys:
        v = data.get(k)
        if v:
            return v
    return None


def to_number(value: Any) -> float | None:
    """Finite float from int/float/numeric string; None otherwise. Booleans are not numbers."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        s = str(value).strip()
        if not s:
            return None
        try:
            num = float(s)
        except ValueError:
            return None
    return num if math.isfinite(num) else None


def to_non_negative(value: Any) -> float:
    """Non-negative number; 0 for non-numeric or negative input."""
    num = to_number(value)
    if num is None or num < 0:
        return 0.0
    return num


def to_quantity(value: Any) -> int:
    """Non-negative whole quantity (fractions truncated)."""
    return int(to_non_negative(value))


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def to_optional_text(value: Any) -> str | None:
    s = to_text(value)
    return s or None
