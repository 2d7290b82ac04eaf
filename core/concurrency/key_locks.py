"""
Tillpoint Core Concurrency — Keyed Lock Table
===============================================
One re-entrant lock per key, created on demand.

Doctrine:
- Read-modify-write on one key is serialized.
- Different keys never share a lock, so they never block each other.
- The table lock is held only to look up / create / drop a key lock,
  never while the caller works under the key lock.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator


class KeyedLockTable:
    """Thread-safe registry of per-key RLocks."""

    def __init__(self) -> None:
        self._table_lock = threading.Lock()
        self._locks: Dict[Hashable, threading.RLock] = {}

    def lock_for(self, key: Hashable) -> threading.RLock:
        with self._table_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        lock = self.lock_for(key)
        with lock:
            yield

    def discard(self, key: Hashable) -> None:
        """Forget the lock for a key that no longer exists."""
        with self._table_lock:
            self._locks.pop(key, None)

    def __len__(self) -> int:
        with self._table_lock:
            return len(self._locks)
