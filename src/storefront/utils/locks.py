"""Keyed in-process locks.

Stock counters, carts and orders are serialised per key: one lock per
product, per customer or per order. A key's lock exists only while some
thread holds it or waits for it; the last one out drops the entry.
"""

import threading
from contextlib import contextmanager


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.RLock()
        self.users = 0


class KeyedLock:
    """A registry of re-entrant locks addressed by string keys."""

    def __init__(self, namespace: str):
        self.namespace = namespace
        self._locks: dict[str, _Entry] = {}
        self._guard = threading.Lock()

    def _acquire_entry(self, key: str) -> _Entry:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _Entry()
                self._locks[key] = entry
            entry.users += 1
            return entry

    def _release_entry(self, key: str, entry: _Entry) -> None:
        with self._guard:
            entry.users -= 1
            if entry.users == 0 and self._locks.get(key) is entry:
                del self._locks[key]

    @contextmanager
    def hold(self, key):
        key = str(key)
        entry = self._acquire_entry(key)
        try:
            with entry.lock:
                yield
        finally:
            self._release_entry(key, entry)

    def reset(self) -> None:
        with self._guard:
            self._locks.clear()

    def __len__(self):
        return len(self._locks)


product_locks = KeyedLock("product")
customer_locks = KeyedLock("customer")
order_locks = KeyedLock("order")


def reset_locks() -> None:
    """Drop every registered lock (useful between tests)."""
    for registry in (product_locks, customer_locks, order_locks):
        registry.reset()
