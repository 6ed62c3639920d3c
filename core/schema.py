"""
Pydantic schemas for extracted bill data and inventory batches.
Used by services, pipeline, storage.
"""
from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.models import ParseWarning


# ---------------------------------------------------------------------------
# Extracted bill line
# ---------------------------------------------------------------------------


class ExtractedItem(BaseModel):
    """One bill line as read by the parsing model. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    medicine_name: str = ""
    quantity: int = Field(default=0, ge=0)
    batch_number: str = ""
    expiry_date_text: str = ""
    mrp: float = Field(default=0.0, ge=0)
    cost_rate: float = Field(default=0.0, ge=0)

    @field_validator("medicine_name", "batch_number", "expiry_date_text", mode="before")
    @classmethod
    def text_stripped(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()


# ---------------------------------------------------------------------------
# Parsed bill (one per page)
# ---------------------------------------------------------------------------


class ParsedBill(BaseModel):
    """Invoice metadata plus ordered line items for one page (or a merged document)."""

    invoice_number: str | None = None
    invoice_date: str | None = None
    supplier_name: str | None = None
    total_amount: float | None = None
    items: list[ExtractedItem] = Field(default_factory=list)
    warnings: list[ParseWarning] = Field(default_factory=list)
    page_count: int = 1

    @property
    def degraded(self) -> bool:
        """True when the model response could not be decoded."""
        return bool(self.warnings)

    def has_metadata(self) -> bool:
        return any(
            v not in (None, "")
            for v in (self.invoice_number, self.invoice_date, self.supplier_name, self.total_amount)
        )

    def metadata(self) -> dict[str, Any]:
        return {
            "invoice_number": self.invoice_number,
            "invoice_date": self.invoice_date,
            "supplier_name": self.supplier_name,
            "total_amount": self.total_amount,
        }


# ---------------------------------------------------------------------------
# Reconciler input
# ---------------------------------------------------------------------------


class NormalizedItem(BaseModel):
    """Extracted item after name normalization and expiry interpretation."""

    model_config = ConfigDict(frozen=True)

    medicine_name: str
    original_name: str = ""
    quantity: int = Field(default=0, ge=0)
    batch_number: str = ""
    expiry_date: date | None = None
    mrp: float = Field(default=0.0, ge=0)
    cost_rate: float = Field(default=0.0, ge=0)
    supplier_name: str | None = None


# ---------------------------------------------------------------------------
# Inventory batch (external entity)
# ---------------------------------------------------------------------------

DEFAULT_CATEGORY = "MEDICINE"
DEFAULT_UNIT = "pcs"
DEFAULT_REORDER_LEVEL = 10


class InventoryBatch(BaseModel):
    """One purchasable stock lot in a store."""

    id: str
    store_id: str
    name: str
    sku: str = ""
    batch_number: str | None = None
    quantity: int = Field(default=0, ge=0)
    expiry_date: date | None = None
    mrp: float = 0.0
    cost_price: float = 0.0
    selling_price: float = 0.0
    manufacturer: str | None = None
    category: str = DEFAULT_CATEGORY
    unit: str = DEFAULT_UNIT
    reorder_level: int = DEFAULT_REORDER_LEVEL
    description: str | None = None
