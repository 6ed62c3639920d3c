"""
PDF -> page images for the vision stage. One PNG per page, written to a caller-owned directory.
"""
from __future__ import annotations

import logging
from pathlib import Path

from pdf2image import convert_from_path
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError

from core.exceptions import ExtractionFailure
from core.interfaces import IPageRasterizer

logger = logging.getLogger(__name__)


class Pdf2ImageRasterizer(IPageRasterizer):
    """Rasterize with pdf2image (poppler). Pages are written as page_<n>.png, n from 1."""

    def __init__(self, dpi: int = 200, prefix: str = "page") -> None:
        self.dpi = dpi
        self.prefix = prefix

    def rasterize(self, pdf_path: Path, output_dir: Path) -> list[Path]:
        pdf_path = Path(pdf_path)
        if not pdf_path.exists():
            raise ExtractionFailure(f"File not found: {pdf_path}")
        try:
            pages = convert_from_path(str(pdf_path), dpi=self.dpi)
        except (PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError, OSError) as e:
            raise ExtractionFailure(f"Could not rasterize {pdf_path.name}: {e}") from e
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        out_paths: list[Path] = []
        for i, page in enumerate(pages):
            img = page.convert("RGB") if page.mode != "RGB" else page
            out = output_dir / f"{self.prefix}_{i + 1}.png"
            img.save(out, format="PNG")
            out_paths.append(out)
        logger.info("Rasterized %s into %s page image(s) at %s dpi", pdf_path.name, len(out_paths), self.dpi)
        return out_paths
