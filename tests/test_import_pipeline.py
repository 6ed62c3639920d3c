"""
Import pipeline with injected fakes: page iteration, first-wins metadata, PDF page cleanup,
parallel page order, normalization, and caller-facing outcomes.
"""
from __future__ import annotations

import time
from datetime import date
from pathlib import Path

import pytest

from core.exceptions import ExtractionFailure
from core.interfaces import IBillParser, IPageRasterizer, IVisionTextExtractor
from core.schema import ExtractedItem, ParsedBill
from pipeline.import_pipeline import BillImportPipeline, merge_pages
from services.parser_service import parse_bill_response
from services.reconciliation_service import BatchReconciler
from storage.inventory_store import InMemoryInventoryStore

STORE = "store-9"


# ---------------------------------------------------------------------------
# Fake implementations (test doubles)
# ---------------------------------------------------------------------------


class FakeVision(IVisionTextExtractor):
    """Returns texts[path.name]; names in `fail_on` raise ExtractionFailure; `delays` slow pages down."""

    def __init__(self, texts: dict[str, str], fail_on: set[str] | None = None, delays: dict[str, float] | None = None) -> None:
        self.texts = texts
        self.fail_on = fail_on or set()
        self.delays = delays or {}
        self.seen: list[str] = []

    def extract_text(self, image_path: Path) -> str:
        self.seen.append(image_path.name)
        assert image_path.exists(), "page image must exist while being extracted"
        time.sleep(self.delays.get(image_path.name, 0))
        if image_path.name in self.fail_on:
            raise ExtractionFailure(f"vision failed on {image_path.name}")
        return self.texts.get(image_path.name, "")


class FakeParser(IBillParser):
    """Treats the 'text' as the model response itself."""

    def parse(self, text: str, *, page_index: int = 0) -> ParsedBill:
        return parse_bill_response(text, page_index=page_index)


class FakeRasterizer(IPageRasterizer):
    def __init__(self, pages: int) -> None:
        self.pages = pages
        self.written: list[Path] = []

    def rasterize(self, pdf_path: Path, output_dir: Path) -> list[Path]:
        out = []
        for i in range(self.pages):
            p = output_dir / f"page_{i + 1}.png"
            p.write_bytes(b"png")
            out.append(p)
        self.written.extend(out)
        return out


def _touch(tmp_path: Path, name: str) -> Path:
    p = tmp_path / name
    p.write_bytes(b"img")
    return p


PAGE1 = '{"invoiceNumber": "INV-1", "supplierName": "Shree Pharma", "items": [{"medicine_name": "Dolo  650", "quantity": 10, "batch_number": "D1", "expiry_date": "05/26", "mrp": 30, "rate": 22}]}'
PAGE2 = '{"invoiceNumber": "INV-2", "supplierName": "Other", "items": [{"medicine_name": "Pan 40", "quantity": 4, "batch_number": "P9", "mrp": 150}]}'


@pytest.fixture
def store() -> InMemoryInventoryStore:
    return InMemoryInventoryStore()


def _pipeline(vision: IVisionTextExtractor, store: InMemoryInventoryStore, sku_generator, **kw) -> BillImportPipeline:
    return BillImportPipeline(vision, FakeParser(), BatchReconciler(store, sku_generator=sku_generator), **kw)


# ---------------------------------------------------------------------------
# Merge semantics
# ---------------------------------------------------------------------------


def test_merge_keeps_first_page_metadata_and_page_order() -> None:
    empty_meta = ParsedBill(items=[ExtractedItem(medicine_name="A")])
    first = ParsedBill(invoice_number="INV-1", items=[ExtractedItem(medicine_name="B")])
    second = ParsedBill(invoice_number="INV-2", supplier_name="Late Supplier", items=[ExtractedItem(medicine_name="C")])
    merged = merge_pages([empty_meta, first, second])
    assert [i.medicine_name for i in merged.items] == ["A", "B", "C"]
    assert merged.invoice_number == "INV-1"
    assert merged.supplier_name is None
    assert merged.page_count == 3


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def test_extract_multiple_images(tmp_path: Path, store, sku_generator) -> None:
    p1, p2 = _touch(tmp_path, "1.jpg"), _touch(tmp_path, "2.png")
    pipe = _pipeline(FakeVision({"1.jpg": PAGE1, "2.png": PAGE2}), store, sku_generator)
    bill = pipe.extract([p1, p2])
    assert [i.medicine_name for i in bill.items] == ["Dolo  650", "Pan 40"]
    assert bill.invoice_number == "INV-1"
    assert bill.supplier_name == "Shree Pharma"


def test_degraded_page_does_not_abort_document(tmp_path: Path, store, sku_generator) -> None:
    p1, p2 = _touch(tmp_path, "1.jpg"), _touch(tmp_path, "2.jpg")
    pipe = _pipeline(FakeVision({"1.jpg": "unreadable scribbles", "2.jpg": PAGE2}), store, sku_generator)
    bill = pipe.extract([p1, p2])
    assert [i.medicine_name for i in bill.items] == ["Pan 40"]
    assert bill.invoice_number == "INV-2"
    assert [w.page_index for w in bill.warnings] == [0]


def test_pdf_pages_are_extracted_then_deleted(tmp_path: Path, store, sku_generator) -> None:
    pdf = _touch(tmp_path, "bill.pdf")
    rasterizer = FakeRasterizer(pages=2)
    vision = FakeVision({"page_1.png": PAGE1, "page_2.png": PAGE2})
    bill = _pipeline(vision, store, sku_generator, rasterizer=rasterizer).extract(pdf)
    assert vision.seen == ["page_1.png", "page_2.png"]
    assert len(bill.items) == 2
    assert rasterizer.written and not any(p.exists() for p in rasterizer.written)


def test_pdf_without_rasterizer_is_unsupported(tmp_path: Path, store, sku_generator) -> None:
    with pytest.raises(ExtractionFailure, match="Unsupported file type"):
        _pipeline(FakeVision({}), store, sku_generator).extract(_touch(tmp_path, "bill.pdf"))


def test_unsupported_and_missing_files_fail(tmp_path: Path, store, sku_generator) -> None:
    pipe = _pipeline(FakeVision({}), store, sku_generator)
    with pytest.raises(ExtractionFailure):
        pipe.extract(_touch(tmp_path, "bill.docx"))
    with pytest.raises(ExtractionFailure, match="File not found"):
        pipe.extract(tmp_path / "nope.jpg")
    with pytest.raises(ExtractionFailure):
        pipe.extract([])


def test_failing_page_aborts_whole_document_with_trace_id(tmp_path: Path, store, sku_generator) -> None:
    p1, p2 = _touch(tmp_path, "1.jpg"), _touch(tmp_path, "2.jpg")
    pipe = _pipeline(FakeVision({"1.jpg": PAGE1}, fail_on={"2.jpg"}), store, sku_generator)
    with pytest.raises(ExtractionFailure) as exc_info:
        pipe.extract([p1, p2], trace_id="trace-x")
    assert exc_info.value.trace_id == "trace-x"


def test_parallel_pages_merge_in_page_order(tmp_path: Path, store, sku_generator) -> None:
    paths = [_touch(tmp_path, f"{i}.jpg") for i in (1, 2, 3)]
    texts = {
        "1.jpg": PAGE1,
        "2.jpg": PAGE2,
        "3.jpg": '{"items": [{"medicine_name": "Cetzine", "quantity": 1}]}',
    }
    vision = FakeVision(texts, delays={"1.jpg": 0.2, "2.jpg": 0.1})
    bill = _pipeline(vision, store, sku_generator, max_workers=3).extract(paths)
    assert [i.medicine_name for i in bill.items] == ["Dolo  650", "Pan 40", "Cetzine"]
    assert bill.invoice_number == "INV-1"


# ---------------------------------------------------------------------------
# Normalization + import
# ---------------------------------------------------------------------------


def test_normalize_items_keeps_original_name_and_parses_expiry(store, sku_generator) -> None:
    pipe = _pipeline(FakeVision({}), store, sku_generator, normalizer=lambda n: n.strip().upper())
    items = [
        ExtractedItem(medicine_name=" dolo 650 ", expiry_date_text="05/26", quantity=2),
        ExtractedItem(medicine_name="   ", quantity=9),
    ]
    (norm,) = pipe.normalize_items(items, supplier_name="Shree Pharma")
    assert norm.medicine_name == "DOLO 650"
    assert norm.original_name == "dolo 650"
    assert norm.expiry_date == date(2026, 5, 1)
    assert norm.supplier_name == "Shree Pharma"


def test_run_import_success(tmp_path: Path, store, sku_generator) -> None:
    p1, p2 = _touch(tmp_path, "1.jpg"), _touch(tmp_path, "2.jpg")
    pipe = _pipeline(FakeVision({"1.jpg": PAGE1, "2.jpg": PAGE1}), store, sku_generator)
    outcome = pipe.run_import(STORE, [p1, p2])
    assert outcome.success
    assert (outcome.created_count, outcome.updated_count) == (1, 1)
    assert outcome.message == "Import confirmed. 1 new batches, 1 stock updates."
    (batch,) = store.list_batches(STORE)
    assert batch.name == "Dolo 650"
    assert batch.quantity == 20
    assert batch.manufacturer == "Shree Pharma"
    assert batch.expiry_date == date(2026, 5, 1)


def test_import_document_reports_metadata(tmp_path: Path, store, sku_generator) -> None:
    pipe = _pipeline(FakeVision({"1.jpg": PAGE1}), store, sku_generator)
    result = pipe.import_document(STORE, _touch(tmp_path, "1.jpg"))
    assert result.invoice["invoice_number"] == "INV-1"
    assert (result.item_count, result.page_count, result.created_count) == (1, 1, 1)
    assert result.trace_id


def test_run_import_extraction_failure_leaves_inventory_untouched(tmp_path: Path, store, sku_generator) -> None:
    p1, p2 = _touch(tmp_path, "1.jpg"), _touch(tmp_path, "2.jpg")
    pipe = _pipeline(FakeVision({"1.jpg": PAGE1}, fail_on={"2.jpg"}), store, sku_generator)
    outcome = pipe.run_import(STORE, [p1, p2])
    assert not outcome.success
    assert outcome.message == "Could not process this document"
    assert store.list_batches() == []


class BrokenStore(InMemoryInventoryStore):
    def create_batch(self, fields):
        raise OSError("database unavailable")


def test_run_import_reconciliation_failure_is_generic(tmp_path: Path, sku_generator) -> None:
    pipe = _pipeline(FakeVision({"1.jpg": PAGE1}), BrokenStore(), sku_generator)
    outcome = pipe.run_import(STORE, _touch(tmp_path, "1.jpg"))
    assert not outcome.success
    assert outcome.message == "Failed to save inventory"
    assert outcome.created_count == 0


def test_confirm_import_reviewed_items(store, sku_generator) -> None:
    pipe = _pipeline(FakeVision({}), store, sku_generator)
    items = [ExtractedItem(medicine_name="Pan 40", quantity=3, batch_number="P9", mrp=150, cost_rate=110)]
    result = pipe.confirm_import(STORE, items, supplier_name="Shree Pharma")
    assert (result.created_count, result.updated_count) == (1, 0)
    (batch,) = store.list_batches(STORE)
    assert (batch.cost_price, batch.selling_price) == (110, 150)
