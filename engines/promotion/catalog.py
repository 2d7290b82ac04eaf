"""
Tillpoint Promotion Engine — Catalog Reader
=============================================
Protocol + InMemory implementation + TTL caching decorator.

Doctrine:
- The catalog is a read-only dependency of the cart: it may be slow,
  unavailable, or raise. Callers treat every failure as
  EvaluationUnavailable.
- Usage counting (max_uses) belongs to the catalog; an exhausted
  promotion simply stops appearing among the candidates.
- Candidates are always tenant-scoped.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from core.caching import TTLCache
from core.config import CartEngineConfig
from core.time.clock import Clock
from engines.promotion.errors import PromotionUsageExhausted
from engines.promotion.models import Promotion

logger = logging.getLogger("tillpoint.catalog")


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════

class PromotionCatalogReader(Protocol):
    def candidate_promotions(
        self,
        tenant_id: uuid.UUID,
        customer_id: Optional[uuid.UUID],
        sales_channel: Optional[str],
        now: datetime,
    ) -> Sequence[Promotion]:
        """Return promotions that may apply for this tenant at `now`."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY CATALOG (deterministic, thread-safe)
# ══════════════════════════════════════════════════════════════

class InMemoryPromotionCatalog:
    """
    Tenant-partitioned promotion catalog with usage counters.

    Used in tests and single-process deployments; a database
    backed reader implements the same protocol.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._promotions: Dict[uuid.UUID, Dict[uuid.UUID, Promotion]] = {}
        self._uses: Dict[tuple[uuid.UUID, uuid.UUID], int] = {}

    def register(self, tenant_id: uuid.UUID, promotion: Promotion) -> None:
        with self._lock:
            self._promotions.setdefault(tenant_id, {})[promotion.promotion_id] = promotion

    def remove(self, tenant_id: uuid.UUID, promotion_id: uuid.UUID) -> bool:
        with self._lock:
            removed = self._promotions.get(tenant_id, {}).pop(promotion_id, None)
            return removed is not None

    def record_use(self, tenant_id: uuid.UUID, promotion_id: uuid.UUID) -> int:
        """Count one redemption; raises when max_uses is already reached."""
        with self._lock:
            promotion = self._promotions.get(tenant_id, {}).get(promotion_id)
            if promotion is None:
                raise KeyError(f"Promotion '{promotion_id}' not found.")
            key = (tenant_id, promotion_id)
            used = self._uses.get(key, 0)
            if promotion.max_uses is not None and used >= promotion.max_uses:
                raise PromotionUsageExhausted(promotion_id, promotion.max_uses)
            self._uses[key] = used + 1
            return used + 1

    def uses(self, tenant_id: uuid.UUID, promotion_id: uuid.UUID) -> int:
        with self._lock:
            return self._uses.get((tenant_id, promotion_id), 0)

    def candidate_promotions(
        self,
        tenant_id: uuid.UUID,
        customer_id: Optional[uuid.UUID],
        sales_channel: Optional[str],
        now: datetime,
    ) -> List[Promotion]:
        with self._lock:
            result = []
            for promotion in self._promotions.get(tenant_id, {}).values():
                if not promotion.validity.contains(now):
                    continue
                used = self._uses.get((tenant_id, promotion.promotion_id), 0)
                if promotion.max_uses is not None and used >= promotion.max_uses:
                    continue
                result.append(promotion)
            return result


# ══════════════════════════════════════════════════════════════
# CACHING DECORATOR
# ══════════════════════════════════════════════════════════════

class CachingPromotionCatalog:
    """
    Wraps a reader with a short TTL cache.

    Cache key: (tenant_id, customer_id, normalized channel). The
    validity window is re-checked by the evaluator against the
    evaluation instant, so a cached list never applies an expired
    promotion. Failures are not cached.
    """

    def __init__(
        self,
        inner: PromotionCatalogReader,
        *,
        clock: Clock,
        cache: Optional[TTLCache] = None,
        ttl_seconds: float = 60,
        max_size: int = 1000,
    ) -> None:
        self._inner = inner
        self._clock = clock
        self._cache = cache or TTLCache(max_size=max_size, default_ttl_seconds=ttl_seconds)

    @classmethod
    def from_config(
        cls, inner: PromotionCatalogReader, *, clock: Clock, config: CartEngineConfig
    ) -> "CachingPromotionCatalog":
        return cls(
            inner,
            clock=clock,
            ttl_seconds=config.catalog_cache_ttl_seconds,
            max_size=config.catalog_cache_max_size,
        )

    def candidate_promotions(
        self,
        tenant_id: uuid.UUID,
        customer_id: Optional[uuid.UUID],
        sales_channel: Optional[str],
        now: datetime,
    ) -> Sequence[Promotion]:
        channel = (sales_channel or "").strip().casefold()
        key = (tenant_id, customer_id, channel)
        cached = self._cache.get(key, self._clock.now_utc())
        if cached is not None:
            logger.debug("Retrieved %d promotions from cache", len(cached))
            return cached

        logger.debug("Cache miss - fetching promotions for tenant %s", tenant_id)
        promotions = tuple(
            self._inner.candidate_promotions(tenant_id, customer_id, sales_channel, now)
        )
        self._cache.put(key, promotions, self._clock.now_utc(), tenant_id=tenant_id)
        return promotions

    def invalidate_tenant(self, tenant_id: uuid.UUID) -> int:
        """Call after promotions of a tenant changed."""
        return self._cache.invalidate_tenant(tenant_id)

    @property
    def cache(self) -> TTLCache:
        return self._cache
