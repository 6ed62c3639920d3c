"""
Abstract interfaces for the bill import pipeline.
Every external dependency is behind an interface; no service depends on a concrete LLM or database.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable

from core.schema import InventoryBatch, ParsedBill

# External medicine-name normalizer: pure, no side effects.
Normalizer = Callable[[str], str]


class ILLMProvider(ABC):
    """Abstract LLM provider: text/chat and vision. Used by the extraction and parsing services."""

    @abstractmethod
    def chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        """Chat completion; returns content string."""
        ...

    def chat_vision(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        """Vision-capable chat. Default: delegate to chat."""
        return self.chat(messages, **kwargs)


class IVisionTextExtractor(ABC):
    """Abstract vision extraction: one page image -> raw unstructured text."""

    @abstractmethod
    def extract_text(self, image_path: Path) -> str:
        """Return the text visible on the image ("" when the model returns none).

        Raises ExtractionFailure on unreadable image or transport/model failure.
        """
        ...


class IBillParser(ABC):
    """Abstract structured parsing: raw bill text -> ParsedBill."""

    @abstractmethod
    def parse(self, text: str, *, page_index: int = 0) -> ParsedBill:
        """Never raises for malformed model output; transport failures raise ExtractionFailure."""
        ...


class IPageRasterizer(ABC):
    """Opaque document converter: PDF path -> ordered page image paths."""

    @abstractmethod
    def rasterize(self, pdf_path: Path, output_dir: Path) -> list[Path]:
        """Write one image per page into output_dir; return paths in page order."""
        ...


class IInventoryStore(ABC):
    """Inventory query/write contract used by the reconciler."""

    @abstractmethod
    def find_batches_by_store_and_name(self, store_id: str, name: str) -> list[InventoryBatch]:
        """All batches in the store whose name equals `name` case-insensitively."""
        ...

    @abstractmethod
    def create_batch(self, fields: dict[str, Any]) -> InventoryBatch:
        """Insert a new batch; `fields` holds InventoryBatch attributes except id."""
        ...

    @abstractmethod
    def update_batch(self, batch_id: str, fields: dict[str, Any]) -> InventoryBatch:
        """Apply `fields` to an existing batch and return the stored result."""
        ...
