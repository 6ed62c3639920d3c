"""Core layer: interfaces, models, schemas, exceptions."""

from core.interfaces import (
    IBillParser,
    IInventoryStore,
    ILLMProvider,
    IPageRasterizer,
    IVisionTextExtractor,
    Normalizer,
)
from core.models import (
    ParseWarning,
    ReconcileResult,
    ImportResult,
    ImportOutcome,
)
from core.schema import (
    ExtractedItem,
    ParsedBill,
    NormalizedItem,
    InventoryBatch,
)
from core.exceptions import (
    BillImportError,
    ExtractionFailure,
    ReconciliationFailure,
    ConfigError,
)

__all__ = [
    "IBillParser",
    "IInventoryStore",
    "ILLMProvider",
    "IPageRasterizer",
    "IVisionTextExtractor",
    "Normalizer",
    "ParseWarning",
    "ReconcileResult",
    "ImportResult",
    "ImportOutcome",
    "ExtractedItem",
    "ParsedBill",
    "NormalizedItem",
    "InventoryBatch",
    "BillImportError",
    "ExtractionFailure",
    "ReconciliationFailure",
    "ConfigError",
]
