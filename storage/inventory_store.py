"""
Reference implementations of the inventory query/write contract.
In-memory for tests and embedding; JSON file for the CLI.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from pathlib import Path
from typing import Any, Callable, Iterable

from core.interfaces import IInventoryStore
from core.schema import InventoryBatch

logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = frozenset({"id", "store_id"})


class InMemoryInventoryStore(IInventoryStore):
    """Thread-safe dict-backed store. Returned batches are copies; mutate only through update_batch."""

    def __init__(
        self,
        batches: Iterable[InventoryBatch] = (),
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._batches: dict[str, InventoryBatch] = {b.id: b.model_copy() for b in batches}
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

    def find_batches_by_store_and_name(self, store_id: str, name: str) -> list[InventoryBatch]:
        key = (name or "").casefold()
        with self._lock:
            return [
                b.model_copy()
                for b in self._batches.values()
                if b.store_id == store_id and b.name.casefold() == key
            ]

    def create_batch(self, fields: dict[str, Any]) -> InventoryBatch:
        with self._lock:
            batch_id = self._id_factory()
            if batch_id in self._batches:
                raise ValueError(f"Duplicate batch id: {batch_id}")
            batch = InventoryBatch.model_validate({**fields, "id": batch_id})
            self._put(batch, previous=None)
            return batch.model_copy()

    def update_batch(self, batch_id: str, fields: dict[str, Any]) -> InventoryBatch:
        bad = _IMMUTABLE_FIELDS.intersection(fields)
        if bad:
            raise ValueError(f"Cannot update immutable field(s): {sorted(bad)}")
        with self._lock:
            existing = self._batches.get(batch_id)
            if existing is None:
                raise KeyError(f"Unknown batch id: {batch_id}")
            updated = InventoryBatch.model_validate({**existing.model_dump(), **fields})
            self._put(updated, previous=existing)
            return updated.model_copy()

    def get_batch(self, batch_id: str) -> InventoryBatch | None:
        with self._lock:
            batch = self._batches.get(batch_id)
            return batch.model_copy() if batch else None

    def list_batches(self, store_id: str | None = None) -> list[InventoryBatch]:
        with self._lock:
            return [
                b.model_copy()
                for b in self._batches.values()
                if store_id is None or b.store_id == store_id
            ]

    def _put(self, batch: InventoryBatch, previous: InventoryBatch | None) -> None:
        """Store batch, then persist. A failed write restores the previous entry and re-raises."""
        self._batches[batch.id] = batch
        try:
            self._after_write()
        except Exception:
            if previous is None:
                del self._batches[batch.id]
            else:
                self._batches[batch.id] = previous
            raise

    def _after_write(self) -> None:
        """Hook for persistent subclasses; called with the lock held."""
        pass


class JsonFileInventoryStore(InMemoryInventoryStore):
    """In-memory store persisted to a JSON file after every write (atomic replace)."""

    def __init__(self, path: str | Path, id_factory: Callable[[], str] | None = None) -> None:
        self.path = Path(path)
        super().__init__(self._load(self.path), id_factory=id_factory)

    @staticmethod
    def _load(path: Path) -> list[InventoryBatch]:
        if not path.exists():
            return []
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        raw = data.get("batches", []) if isinstance(data, dict) else []
        batches = [InventoryBatch.model_validate(b) for b in raw]
        logger.info("Loaded %s batch(es) from %s", len(batches), path)
        return batches

    def _after_write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"batches": [b.model_dump(mode="json") for b in self._batches.values()]}
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp, self.path)
