"""
Data models for the import pipeline.
Uses dataclasses for DTOs; Pydantic schemas (ExtractedItem, InventoryBatch, etc.) in core.schema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ParseWarning:
    """A page whose model response could not be decoded into items. Not an error."""

    page_index: int
    reason: str
    raw_excerpt: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"page_index": self.page_index, "reason": self.reason, "raw_excerpt": self.raw_excerpt}


@dataclass
class ReconcileResult:
    """Counts of created vs updated batches for one reconciliation run."""

    created_count: int = 0
    updated_count: int = 0

    @property
    def processed_count(self) -> int:
        return self.created_count + self.updated_count

    def to_dict(self) -> dict[str, int]:
        return {"created_count": self.created_count, "updated_count": self.updated_count}


@dataclass
class ImportResult:
    """Result of a full import (extraction + reconciliation) for one document."""

    trace_id: str
    created_count: int
    updated_count: int
    item_count: int
    page_count: int
    invoice: dict[str, Any] = field(default_factory=dict)
    warnings: list[ParseWarning] = field(default_factory=list)
    processing_time_sec: float = 0.0


@dataclass
class ImportOutcome:
    """Caller-facing result: coarse success/failure with a human-readable message."""

    success: bool
    message: str
    created_count: int = 0
    updated_count: int = 0
    trace_id: str = ""
    warnings: list[ParseWarning] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Export for CLI / JSON responses."""
        return {
            "success": self.success,
            "message": self.message,
            "created_count": self.created_count,
            "updated_count": self.updated_count,
            "trace_id": self.trace_id,
            "warnings": [w.to_dict() for w in self.warnings],
        }
