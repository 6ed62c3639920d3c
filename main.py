"""
Pharmacy supplier-bill import: entry point.

Two modes:
  1. Extract only (--extract-only): document -> vision text -> structured bill JSON on stdout, for review.
  2. Import (default): document -> structured bill -> normalize -> reconcile into the inventory store.

Usage:
  python main.py --store STORE_ID bill.pdf [page2.jpg ...] [--inventory inventory.json] [--workers N]

- Documents: JPEG/PNG/WEBP/GIF images, or PDFs (rasterized per page; needs poppler).
- Inventory: JSON file store (created if missing); path from --inventory, INVENTORY_PATH, or config.yaml.
- Exit code 0 on success, 1 when the document could not be processed or inventory could not be saved.
"""
from __future__ import annotations

import argparse
import json
import logging
import random
import sys
from pathlib import Path
from typing import Any

from core.exceptions import ConfigError, ExtractionFailure
from core.interfaces import IInventoryStore
from extraction.expiry import ExpiryDateInterpreter
from extraction.page_rasterizer import Pdf2ImageRasterizer
from pipeline.import_pipeline import EXTRACTION_FAILED_MESSAGE, BillImportPipeline
from providers.factory import create_provider
from services.parser_service import StructuredBillParser
from services.reconciliation_service import BatchReconciler, BlueprintDefaults
from services.vision_service import VisionTextExtractor
from storage.inventory_store import JsonFileInventoryStore
from utils.config import AppConfig, load_config
from utils.locks import NameLockRegistry
from utils.logger import setup_logging
from utils.sku import SkuGenerator


def create_import_pipeline(config: AppConfig, store: IInventoryStore) -> BillImportPipeline:
    """Wire providers, services and store from config. Vision and parsing use separate model clients."""
    llm = config.llm
    imp = config.importing
    vision = VisionTextExtractor(
        create_provider(llm, model=llm.vision_model),
        model=llm.vision_model,
        max_retries=llm.max_retries,
        retry_delay_sec=llm.retry_delay_sec,
        max_image_px=imp.vision_image_max_px,
    )
    parser = StructuredBillParser(
        create_provider(llm, model=llm.parser_model),
        model=llm.parser_model,
        max_retries=llm.max_retries,
        retry_delay_sec=llm.retry_delay_sec,
    )
    rng = random.Random(imp.sku_seed) if imp.sku_seed is not None else None
    reconciler = BatchReconciler(
        store,
        sku_generator=SkuGenerator(rng=rng),
        lock_registry=NameLockRegistry() if imp.serialize_by_name else None,
        defaults=BlueprintDefaults(
            category=imp.default_category,
            unit=imp.default_unit,
            reorder_level=imp.default_reorder_level,
        ),
    )
    return BillImportPipeline(
        vision,
        parser,
        reconciler,
        expiry_parser=ExpiryDateInterpreter(dayfirst=imp.expiry_dayfirst),
        rasterizer=Pdf2ImageRasterizer(dpi=imp.pdf_dpi),
        max_workers=imp.max_workers,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Import a supplier purchase bill (images or PDF) into pharmacy inventory",
    )
    parser.add_argument("documents", nargs="+", help="Bill image(s) or PDF")
    parser.add_argument("--store", "-s", default=None, help="Store id (required unless --extract-only)")
    parser.add_argument("--inventory", default=None, help="Inventory JSON file (default: INVENTORY_PATH or inventory.json)")
    parser.add_argument("--config", "-c", default=None, help="YAML config file (default: config.yaml)")
    parser.add_argument("--extract-only", action="store_true", help="Print the parsed bill JSON; do not touch inventory")
    parser.add_argument("--workers", "-w", type=int, default=None, help="Pages extracted in parallel (default: 1)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config).with_overrides(
            inventory_path=args.inventory,
            log_level=args.log_level,
            importing__max_workers=args.workers,
        )
    except ConfigError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    setup_logging(config.log_level)
    log = logging.getLogger(__name__)

    if not args.extract_only and not args.store:
        parser.error("--store is required unless --extract-only is given")

    store = JsonFileInventoryStore(config.inventory_path)
    pipeline = create_import_pipeline(config, store)

    if args.extract_only:
        try:
            bill = pipeline.extract(args.documents)
        except ExtractionFailure as e:
            log.error("Extraction failed: %s", e)
            print(EXTRACTION_FAILED_MESSAGE, file=sys.stderr)
            return 1
        out: dict[str, Any] = bill.model_dump(mode="json")
        out["warnings"] = [w.to_dict() for w in bill.warnings]
        print(json.dumps(out, indent=2))
        return 0

    outcome = pipeline.run_import(args.store, args.documents)
    print(json.dumps(outcome.to_dict(), indent=2))
    if outcome.success:
        log.info("Inventory saved to %s", Path(config.inventory_path).resolve())
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())
