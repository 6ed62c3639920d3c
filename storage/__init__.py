"""Inventory stores implementing IInventoryStore."""

from storage.inventory_store import InMemoryInventoryStore, JsonFileInventoryStore

__all__ = ["InMemoryInventoryStore", "JsonFileInventoryStore"]
