"""
Bill import pipeline: document (images or PDF) -> parsed bill -> normalized items -> inventory.
Does not know which LLM or database is used; all collaborators injected via constructor.
Flow per page: vision text extraction -> structured parsing. Then: normalize -> reconcile.
"""

from __future__ import annotations

import tempfile
import time
import uuid
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from contextlib import ExitStack
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Sequence, Union

from core.exceptions import BillImportError, ExtractionFailure, ReconciliationFailure
from core.interfaces import IBillParser, IPageRasterizer, IVisionTextExtractor, Normalizer
from core.models import ImportOutcome, ImportResult, ParseWarning, ReconcileResult
from core.schema import ExtractedItem, NormalizedItem, ParsedBill
from extraction.expiry import parse_expiry_date
from services.reconciliation_service import BatchReconciler
from utils.image_utils import is_supported_image
from utils.logger import get_logger
from utils.name_normalize import normalize_medicine_name

DocumentPaths = Union[str, Path, Sequence[Union[str, Path]]]

EXTRACTION_FAILED_MESSAGE = "Could not process this document"
RECONCILIATION_FAILED_MESSAGE = "Failed to save inventory"


@dataclass(frozen=True)
class PageImage:
    """One page to extract. Temporary pages are deleted once consumed."""

    index: int
    path: Path
    temporary: bool = False


def merge_pages(pages: Sequence[ParsedBill]) -> ParsedBill:
    """
    Concatenate items in page order. Invoice metadata comes whole from the first page that
    supplies any (first-wins; later pages never override or fill in).
    """
    items: list[ExtractedItem] = []
    warnings: list[ParseWarning] = []
    meta_source: ParsedBill | None = None
    for page in pages:
        items.extend(page.items)
        warnings.extend(page.warnings)
        if meta_source is None and page.has_metadata():
            meta_source = page
    meta = meta_source.metadata() if meta_source else {}
    return ParsedBill(**meta, items=items, warnings=warnings, page_count=len(pages))


def _as_path_list(paths: DocumentPaths) -> list[Path]:
    if isinstance(paths, (str, Path)):
        return [Path(paths)]
    return [Path(p) for p in paths]


def success_message(result: ReconcileResult) -> str:
    return f"Import confirmed. {result.created_count} new batches, {result.updated_count} stock updates."


class BillImportPipeline:
    """
    Production pipeline. extract() for review, confirm_import() for reviewed items,
    import_document() for both, run_import() for a caller-facing outcome that never raises.
    No global state; no knowledge of concrete LLM or store. All deps injected.
    """

    def __init__(
        self,
        vision_extractor: IVisionTextExtractor,
        bill_parser: IBillParser,
        reconciler: BatchReconciler,
        *,
        normalizer: Normalizer = normalize_medicine_name,
        expiry_parser: Callable[[str], date | None] = parse_expiry_date,
        rasterizer: IPageRasterizer | None = None,
        max_workers: int = 1,
    ) -> None:
        self._vision = vision_extractor
        self._parser = bill_parser
        self._reconciler = reconciler
        self._normalize = normalizer
        self._parse_expiry = expiry_parser
        self._rasterizer = rasterizer
        self._max_workers = max(1, int(max_workers))

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def _expand_pages(self, paths: list[Path], stack: ExitStack) -> list[PageImage]:
        """Images pass through; PDFs are rasterized into a temp dir removed when the stack closes."""
        pages: list[PageImage] = []
        for path in paths:
            if not path.exists():
                raise ExtractionFailure(f"File not found: {path}")
            if path.suffix.lower() == ".pdf":
                if self._rasterizer is None:
                    raise ExtractionFailure(f"Unsupported file type: {path.suffix} (no PDF rasterizer configured)")
                tmp_dir = Path(stack.enter_context(tempfile.TemporaryDirectory(prefix="bill_pages_")))
                for page_path in self._rasterizer.rasterize(path, tmp_dir):
                    pages.append(PageImage(index=len(pages), path=page_path, temporary=True))
            elif is_supported_image(path):
                pages.append(PageImage(index=len(pages), path=path))
            else:
                raise ExtractionFailure(f"Unsupported file type: {path.suffix or path.name}")
        return pages

    def _process_page(self, page: PageImage) -> ParsedBill:
        try:
            text = self._vision.extract_text(page.path)
            return self._parser.parse(text, page_index=page.index)
        finally:
            if page.temporary:
                page.path.unlink(missing_ok=True)

    def _process_pages_parallel(self, pages: list[PageImage]) -> list[ParsedBill]:
        """Fan pages out; results are keyed by page index so merge order is page order."""
        results: dict[int, ParsedBill] = {}
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(pages))) as executor:
            futures: dict[Future[ParsedBill], int] = {
                executor.submit(self._process_page, page): page.index for page in pages
            }
            for future in as_completed(futures):
                try:
                    results[futures[future]] = future.result()
                except BillImportError:
                    for f in futures:
                        f.cancel()
                    raise
        return [results[page.index] for page in pages]

    def extract(self, document_paths: DocumentPaths, *, trace_id: str | None = None) -> ParsedBill:
        """
        Run vision + parsing over every page and merge. Raises ExtractionFailure on the first
        page that fails (no partial document); undecodable pages contribute ParseWarnings only.
        """
        trace_id = trace_id or str(uuid.uuid4())
        log = get_logger(__name__, trace_id)
        paths = _as_path_list(document_paths)
        try:
            with ExitStack() as stack:
                pages = self._expand_pages(paths, stack)
                if not pages:
                    raise ExtractionFailure("Document has no pages")
                log.info("Extracting %s page(s) from %s", len(pages), ", ".join(p.name for p in paths))
                if self._max_workers > 1 and len(pages) > 1:
                    parsed = self._process_pages_parallel(pages)
                else:
                    parsed = [self._process_page(page) for page in pages]
        except ExtractionFailure as e:
            if not e.trace_id:
                e.trace_id = trace_id
            log.error("Extraction failed: %s", e)
            raise
        bill = merge_pages(parsed)
        log.info(
            "Extracted %s item(s) from %s page(s); %s page(s) degraded",
            len(bill.items),
            len(parsed),
            len(bill.warnings),
        )
        return bill

    # ------------------------------------------------------------------
    # Normalization + reconciliation
    # ------------------------------------------------------------------

    def normalize_items(
        self,
        items: Sequence[ExtractedItem],
        *,
        supplier_name: str | None = None,
    ) -> list[NormalizedItem]:
        """Normalize names (original kept for audit) and interpret expiry text. Nameless items are dropped."""
        out: list[NormalizedItem] = []
        for item in items:
            name = self._normalize(item.medicine_name)
            if not name:
                continue
            out.append(
                NormalizedItem(
                    medicine_name=name,
                    original_name=item.medicine_name,
                    quantity=item.quantity,
                    batch_number=item.batch_number,
                    expiry_date=self._parse_expiry(item.expiry_date_text),
                    mrp=item.mrp,
                    cost_rate=item.cost_rate,
                    supplier_name=supplier_name,
                )
            )
        return out

    def confirm_import(
        self,
        store_id: str,
        items: Sequence[ExtractedItem],
        *,
        supplier_name: str | None = None,
        trace_id: str | None = None,
    ) -> ReconcileResult:
        """Reconcile reviewed items into the store. Raises ReconciliationFailure."""
        trace_id = trace_id or str(uuid.uuid4())
        log = get_logger(__name__, trace_id)
        normalized = self.normalize_items(items, supplier_name=supplier_name)
        dropped = len(items) - len(normalized)
        if dropped:
            log.warning("Dropped %s item(s) without a medicine name", dropped)
        return self._reconciler.reconcile(store_id, normalized, trace_id=trace_id)

    def import_document(self, store_id: str, document_paths: DocumentPaths) -> ImportResult:
        """Extract then reconcile. Raises ExtractionFailure / ReconciliationFailure."""
        trace_id = str(uuid.uuid4())
        start = time.perf_counter()
        bill = self.extract(document_paths, trace_id=trace_id)
        result = self.confirm_import(
            store_id,
            bill.items,
            supplier_name=bill.supplier_name,
            trace_id=trace_id,
        )
        return ImportResult(
            trace_id=trace_id,
            created_count=result.created_count,
            updated_count=result.updated_count,
            item_count=len(bill.items),
            page_count=bill.page_count,
            invoice=bill.metadata(),
            warnings=list(bill.warnings),
            processing_time_sec=round(time.perf_counter() - start, 4),
        )

    def run_import(self, store_id: str, document_paths: DocumentPaths) -> ImportOutcome:
        """Caller-facing import: coarse success/failure message, no per-item detail."""
        log = get_logger(__name__)
        try:
            result = self.import_document(store_id, document_paths)
        except ExtractionFailure as e:
            return ImportOutcome(success=False, message=EXTRACTION_FAILED_MESSAGE, trace_id=e.trace_id)
        except ReconciliationFailure as e:
            log.warning(
                "Import partially applied before failure: %s created, %s updated",
                e.created_count,
                e.updated_count,
            )
            return ImportOutcome(
                success=False,
                message=RECONCILIATION_FAILED_MESSAGE,
                created_count=e.created_count,
                updated_count=e.updated_count,
                trace_id=e.trace_id,
            )
        return ImportOutcome(
            success=True,
            message=success_message(
                ReconcileResult(created_count=result.created_count, updated_count=result.updated_count)
            ),
            created_count=result.created_count,
            updated_count=result.updated_count,
            trace_id=result.trace_id,
            warnings=result.warnings,
        )
