"""Custom exceptions for the bill import pipeline. No generic Exception usage."""

from __future__ import annotations


class BillImportError(Exception):
    """Base exception for import failures."""

    def __init__(self, message: str, trace_id: str | None = None) -> None:
        self.trace_id = trace_id or ""
        super().__init__(message)


class ExtractionFailure(BillImportError):
    """Document could not be turned into text/items (model transport, unreadable or unsupported file).

    Fatal to the whole import: no partial-document result is returned.
    """

    pass


class ReconciliationFailure(BillImportError):
    """Persistence error while reconciling one item; remaining items are not processed.

    Creates/updates applied before the failing item stay in place (no rollback).
    """

    def __init__(
        self,
        message: str,
        trace_id: str | None = None,
        *,
        created_count: int = 0,
        updated_count: int = 0,
    ) -> None:
        super().__init__(message, trace_id=trace_id)
        self.created_count = created_count
        self.updated_count = updated_count

    @property
    def processed_count(self) -> int:
        """Items fully applied before the failure."""
        return self.created_count + self.updated_count


class ConfigError(BillImportError):
    """Invalid or missing configuration."""

    pass
