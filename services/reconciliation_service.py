"""
Batch reconciliation: extracted, normalized bill items -> inventory creates/updates.

Identity of a batch within a store is (name case-insensitive, batch number exact; empty == empty).
Matched batches get additive quantity and fill-only field updates; unmatched items create a new
batch, inheriting category/unit/reorder level from any existing batch of the same name.
"""

from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, ContextManager, Sequence

from core.exceptions import ReconciliationFailure
from core.interfaces import IInventoryStore
from core.models import ReconcileResult
from core.schema import (
    DEFAULT_CATEGORY,
    DEFAULT_REORDER_LEVEL,
    DEFAULT_UNIT,
    InventoryBatch,
    NormalizedItem,
)
from utils.locks import NameLockRegistry
from utils.logger import get_logger
from utils.sku import SkuGenerator


IMPORTED_DESCRIPTION = "Imported from Supplier Bill"


@dataclass(frozen=True)
class BlueprintDefaults:
    """Values for a new batch when its name family is empty."""

    category: str = DEFAULT_CATEGORY
    unit: str = DEFAULT_UNIT
    reorder_level: int = DEFAULT_REORDER_LEVEL


def find_exact_batch(family: Sequence[InventoryBatch], batch_number: str) -> InventoryBatch | None:
    """Batch whose number equals batch_number exactly; a missing number matches an empty one."""
    wanted = batch_number or ""
    for batch in family:
        if (batch.batch_number or "") == wanted:
            return batch
    return None


def _fill_price(existing: float | None, incoming: float) -> float:
    return existing if existing and existing > 0 else incoming


def plan_update(existing: InventoryBatch, item: NormalizedItem) -> dict[str, Any]:
    """Fields for the update path: additive quantity, fill-only prices and metadata."""
    return {
        "quantity": (existing.quantity or 0) + item.quantity,
        "mrp": _fill_price(existing.mrp, item.mrp),
        "cost_price": _fill_price(existing.cost_price, item.cost_rate),
        "selling_price": _fill_price(existing.selling_price, item.mrp),
        "batch_number": existing.batch_number or item.batch_number or None,
        "expiry_date": existing.expiry_date or item.expiry_date,
        "manufacturer": existing.manufacturer or item.supplier_name or None,
    }


def plan_create(
    store_id: str,
    item: NormalizedItem,
    blueprint: InventoryBatch | None,
    defaults: BlueprintDefaults,
    sku: str,
) -> dict[str, Any]:
    """Fields for the create path. Selling price starts at MRP, never at cost."""
    return {
        "store_id": store_id,
        "name": item.medicine_name,
        "sku": sku,
        "quantity": item.quantity,
        "batch_number": item.batch_number or None,
        "expiry_date": item.expiry_date,
        "mrp": item.mrp,
        "cost_price": item.cost_rate,
        "selling_price": item.mrp,
        "manufacturer": item.supplier_name or None,
        "category": blueprint.category if blueprint else defaults.category,
        "unit": blueprint.unit if blueprint else defaults.unit,
        "reorder_level": blueprint.reorder_level if blueprint else defaults.reorder_level,
        "description": IMPORTED_DESCRIPTION,
    }


class BatchReconciler:
    """
    Sequential, in-order reconciliation against an injected inventory store.
    Each item is matched against the store state as of that item, so a later item for a batch
    created earlier in the same run takes the update path.

    With a NameLockRegistry, lookup and write for one item run under a per-(store, name) lock so
    concurrent imports sharing the registry cannot both create the same new batch. Without one,
    two concurrent runs may both create (documented race).
    """

    def __init__(
        self,
        store: IInventoryStore,
        *,
        sku_generator: SkuGenerator | None = None,
        lock_registry: NameLockRegistry | None = None,
        defaults: BlueprintDefaults | None = None,
    ) -> None:
        self._store = store
        self._sku = sku_generator or SkuGenerator()
        self._locks = lock_registry
        self._defaults = defaults or BlueprintDefaults()

    def _hold(self, store_id: str, name: str) -> ContextManager[Any]:
        if self._locks is None:
            return nullcontext()
        return self._locks.hold(store_id, name)

    def reconcile_item(self, store_id: str, item: NormalizedItem) -> tuple[str, InventoryBatch]:
        """Apply one item. Returns ("created" | "updated", stored batch). Store errors propagate."""
        with self._hold(store_id, item.medicine_name):
            family = self._store.find_batches_by_store_and_name(store_id, item.medicine_name)
            match = find_exact_batch(family, item.batch_number)
            if match is not None:
                batch = self._store.update_batch(match.id, plan_update(match, item))
                return "updated", batch
            blueprint = family[0] if family else None
            sku = self._sku.generate(item.medicine_name, item.batch_number)
            batch = self._store.create_batch(
                plan_create(store_id, item, blueprint, self._defaults, sku)
            )
            return "created", batch

    def reconcile(
        self,
        store_id: str,
        items: Sequence[NormalizedItem],
        *,
        trace_id: str | None = None,
    ) -> ReconcileResult:
        """
        Reconcile items in input order. The first store error aborts the remaining items and raises
        ReconciliationFailure; earlier creates/updates are not rolled back.
        """
        log = get_logger(__name__, trace_id)
        result = ReconcileResult()
        for index, item in enumerate(items):
            try:
                action, batch = self.reconcile_item(store_id, item)
            except Exception as e:
                log.error(
                    "Reconciliation failed at item %s/%s (%s, batch=%r): %s",
                    index + 1,
                    len(items),
                    item.medicine_name,
                    item.batch_number,
                    e,
                )
                raise ReconciliationFailure(
                    f"Failed to save inventory: {e}",
                    trace_id=trace_id,
                    created_count=result.created_count,
                    updated_count=result.updated_count,
                ) from e
            if action == "created":
                result.created_count += 1
            else:
                result.updated_count += 1
            log.debug(
                "%s batch %s: name=%s batch=%r qty=%s",
                action,
                batch.id,
                batch.name,
                batch.batch_number,
                batch.quantity,
            )
        log.info(
            "Reconciled %s item(s) for store %s: %s created, %s updated",
            len(items),
            store_id,
            result.created_count,
            result.updated_count,
        )
        return result
