"""Pipeline services: vision text extraction, structured parsing, batch reconciliation."""

from services.vision_service import VisionTextExtractor
from services.parser_service import StructuredBillParser
from services.reconciliation_service import BatchReconciler, BlueprintDefaults

__all__ = [
    "VisionTextExtractor",
    "StructuredBillParser",
    "BatchReconciler",
    "BlueprintDefaults",
]
