"""
Tillpoint Core Caching — Tenant-Scoped TTL Cache
==================================================
Short-lived read cache for slow collaborators (promotion catalog).

Doctrine: Cache is disposable — always refillable from its source.
Every entry is owned by exactly one tenant; keys are tuples that
start with the tenant id, so no entry is ever shared across tenants.
Time is injected: no datetime.now() calls.
"""

from __future__ import annotations

import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Hashable, Optional, Tuple

CacheKey = Tuple[Hashable, ...]


# ══════════════════════════════════════════════════════════════
# CACHE ENTRY
# ══════════════════════════════════════════════════════════════

@dataclass
class CacheEntry:
    """A single cached value with TTL metadata."""

    key: CacheKey
    value: Any
    created_at: datetime
    expires_at: datetime
    tenant_id: uuid.UUID

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


# ══════════════════════════════════════════════════════════════
# CACHE STATISTICS
# ══════════════════════════════════════════════════════════════

@dataclass
class CacheStats:
    """Cache performance statistics."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "invalidations": self.invalidations,
            "hit_rate": round(self.hit_rate, 4),
        }


# ══════════════════════════════════════════════════════════════
# TTL CACHE (LRU + TTL + tenant invalidation)
# ══════════════════════════════════════════════════════════════

class TTLCache:
    """
    Thread-safe in-memory LRU cache with TTL expiration.

    - TTL-based expiration (global default, per-entry override)
    - LRU eviction when max_size exceeded
    - Tenant flush via invalidate_tenant()
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl_seconds: float = 60,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be > 0.")
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be > 0.")
        self._lock = threading.Lock()
        self._max_size = max_size
        self._default_ttl = timedelta(seconds=default_ttl_seconds)
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self._stats = CacheStats()

    def get(self, key: CacheKey, now: datetime) -> Optional[Any]:
        """Return the cached value, or None on miss / expired entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None

            if entry.is_expired(now):
                self._evict(key)
                self._stats.misses += 1
                return None

            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry.value

    def put(
        self,
        key: CacheKey,
        value: Any,
        now: datetime,
        *,
        tenant_id: uuid.UUID,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        if not key or key[0] != tenant_id:
            raise ValueError("Cache key must start with the owning tenant id.")
        ttl = timedelta(seconds=ttl_seconds) if ttl_seconds else self._default_ttl

        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_size:
                self._evict_lru()

            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                expires_at=now + ttl,
                tenant_id=tenant_id,
            )
            self._entries.move_to_end(key)

    def invalidate_tenant(self, tenant_id: uuid.UUID) -> int:
        """Drop every entry owned by a tenant. Returns number removed."""
        with self._lock:
            keys = [k for k, e in self._entries.items() if e.tenant_id == tenant_id]
            for key in keys:
                del self._entries[key]
            self._stats.invalidations += len(keys)
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict(self, key: CacheKey) -> None:
        self._entries.pop(key, None)
        self._stats.evictions += 1

    def _evict_lru(self) -> None:
        if self._entries:
            oldest_key = next(iter(self._entries))
            self._evict(oldest_key)
