"""Per-store, per-name advisory locks for the reconcile find -> create/update step."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class _NameLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class NameLockRegistry:
    """
    One lock per (store_id, casefolded name). Held around the match lookup and the
    resulting write so concurrent imports of the same new (name, batch) cannot both create.
    Only serializes callers sharing this registry (same process).

    A lock lives only while some caller holds or waits on it, so the registry does not grow
    with the number of distinct names seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], _NameLock] = {}

    def _acquire_entry(self, key: tuple[str, str]) -> _NameLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _NameLock()
                self._locks[key] = entry
            entry.users += 1
            return entry

    def _release_entry(self, key: tuple[str, str], entry: _NameLock) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, store_id: str, name: str) -> Iterator[None]:
        key = (store_id, (name or "").casefold())
        entry = self._acquire_entry(key)
        try:
            with entry.lock:
                yield
        finally:
            self._release_entry(key, entry)
