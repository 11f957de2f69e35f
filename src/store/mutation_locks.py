"""Keyed re-entrant locks for serializing per-table mutations."""

from __future__ import annotations

import threading
import weakref
from contextlib import contextmanager
from typing import Any, Hashable, Iterator


class MutationLockRegistry:
    """Hand out one re-entrant lock per key.

    Keys are table ids for row mutations and ``("name", name)`` tuples
    for operations that decide between create and overwrite by name.
    Locks are held weakly: a key's lock lives only while some caller
    holds or waits on it, so deleted tables and retired names do not
    accumulate.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[Hashable, Any] = weakref.WeakValueDictionary()

    def lock_for(self, key: Hashable) -> Any:
        """Return the lock for a key, creating it on first use.

        Callers must keep the returned lock referenced while using it.
        """
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for a key for the duration of the block."""
        lock = self.lock_for(key)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
