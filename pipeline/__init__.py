"""Pipeline: multi-page bill extraction and inventory import."""

from pipeline.import_pipeline import BillImportPipeline, merge_pages

__all__ = [
    "BillImportPipeline",
    "merge_pages",
]
