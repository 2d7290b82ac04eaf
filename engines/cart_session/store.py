"""
Tillpoint Cart Session Engine — Session Store
===============================================
Protocol + InMemory implementation.

Doctrine:
- Key = (tenant_id, session_id). A lookup under another tenant
  misses exactly like an unknown id.
- "Not found" is never an exception: operations return None.
- mutate() is atomic per key: it holds the key lock, hands `fn` a
  working copy, and commits the copy only if `fn` returns normally.
  An exception (including OperationCancelled) discards the copy.
- Different keys never share a lock.
- Key locks exist only for stored sessions: a miss returns before a
  lock is created, so unknown or foreign ids never grow the table.
"""

from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Protocol, Tuple, TypeVar

from core.concurrency import KeyedLockTable
from core.time.temporal import is_expired
from engines.cart_session.models import CartSession

logger = logging.getLogger("tillpoint.cart")

T = TypeVar("T")
SessionKey = Tuple[uuid.UUID, uuid.UUID]


class CartSessionStore(Protocol):
    def create(self, session: CartSession) -> CartSession: ...

    def get(self, tenant_id: uuid.UUID, session_id: uuid.UUID) -> Optional[CartSession]: ...

    def mutate(
        self,
        tenant_id: uuid.UUID,
        session_id: uuid.UUID,
        fn: Callable[[CartSession], T],
    ) -> Optional[T]: ...

    def clear(
        self, tenant_id: uuid.UUID, session_id: uuid.UUID, now: Optional[datetime] = None
    ) -> Optional[CartSession]: ...

    def delete(self, tenant_id: uuid.UUID, session_id: uuid.UUID) -> bool: ...

    def evict_idle(self, now: datetime, max_idle_seconds: float) -> int: ...


class InMemoryCartSessionStore:
    """
    Process-local session registry.

    The index lock guards only the dict itself; all session work
    happens under the key lock.
    """

    def __init__(self) -> None:
        self._index_lock = threading.Lock()
        self._sessions: Dict[SessionKey, CartSession] = {}
        self._locks = KeyedLockTable()

    # ── internals ─────────────────────────────────────────────

    def _load(self, key: SessionKey) -> Optional[CartSession]:
        with self._index_lock:
            return self._sessions.get(key)

    def _save(self, key: SessionKey, session: CartSession) -> None:
        with self._index_lock:
            self._sessions[key] = session

    @contextmanager
    def _hold_existing(self, key: SessionKey) -> Iterator[Optional[CartSession]]:
        """Hold the key lock and yield the stored session, or yield None on a miss."""
        if self._load(key) is None:
            yield None
            return
        with self._locks.hold(key):
            session = self._load(key)
            if session is None:
                # deleted while waiting for the lock
                self._locks.discard(key)
            yield session

    # ── operations ────────────────────────────────────────────

    def create(self, session: CartSession) -> CartSession:
        key = (session.tenant_id, session.session_id)
        with self._locks.hold(key):
            if self._load(key) is not None:
                raise ValueError(f"Session {session.session_id} already exists.")
            self._save(key, session.copy())
        return session.copy()

    def get(self, tenant_id, session_id) -> Optional[CartSession]:
        if tenant_id is None:
            return None
        with self._hold_existing((tenant_id, session_id)) as session:
            return session.copy() if session is not None else None

    def mutate(self, tenant_id, session_id, fn):
        if tenant_id is None:
            return None
        key = (tenant_id, session_id)
        with self._hold_existing(key) as current:
            if current is None:
                return None
            working = current.copy()
            result = fn(working)
            self._save(key, working)
            return result

    def clear(self, tenant_id, session_id, now=None) -> Optional[CartSession]:
        def _empty(session: CartSession) -> CartSession:
            session.empty()
            if now is not None:
                session.updated_at = now
            return session.copy()

        return self.mutate(tenant_id, session_id, _empty)

    def delete(self, tenant_id, session_id) -> bool:
        if tenant_id is None:
            return False
        key = (tenant_id, session_id)
        with self._hold_existing(key) as session:
            if session is None:
                return False
            with self._index_lock:
                removed = self._sessions.pop(key, None)
        self._locks.discard(key)
        return removed is not None

    def evict_idle(self, now: datetime, max_idle_seconds: float) -> int:
        """Delete sessions not updated for longer than max_idle_seconds."""
        with self._index_lock:
            keys: List[SessionKey] = list(self._sessions)

        evicted = 0
        for key in keys:
            with self._hold_existing(key) as session:
                if session is None or not is_expired(session.updated_at, max_idle_seconds, now):
                    continue
                with self._index_lock:
                    self._sessions.pop(key, None)
            self._locks.discard(key)
            evicted += 1

        if evicted:
            logger.info("Evicted %d idle cart sessions", evicted)
        return evicted

    def count(self, tenant_id: Optional[uuid.UUID] = None) -> int:
        with self._index_lock:
            if tenant_id is None:
                return len(self._sessions)
            return sum(1 for t, _ in self._sessions if t == tenant_id)
