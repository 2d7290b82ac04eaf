"""
Tillpoint Cart Session Engine — Service
=========================================
Façade over store + promotion catalog + evaluator.

Every operation: resolve tenant → validate request → mutate a
working copy under the key lock → recalculate → commit → return a
CartSessionView. Totals are never cached: each view is a full
recalculation against the cart as it is now.

Graceful degradation: when the catalog fails, times out or the
evaluation is unusable, the cart is priced without discounts,
the view is flagged promotions_degraded, and the tenant's promotion
health goes DEGRADED until its next successful evaluation. Health is
tracked per tenant.

Cancellation: checked before the catalog call, after it, and
right before commit. A cancelled operation raises
OperationCancelled and the stored session is left as it was.
"""

from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from core.concurrency import CancellationToken, OperationCancelled
from core.concurrency.cancellation import check_cancelled
from core.config import CartEngineConfig
from core.context import TenantContext
from core.resilience import SubsystemHealth
from core.time.clock import Clock
from engines.cart_session.commands import (
    AddCartItemRequest,
    ApplyCouponsRequest,
    CreateCartSessionRequest,
    RemoveCartItemRequest,
    UpdateCartItemQuantityRequest,
)
from engines.cart_session.errors import InvalidTenant
from engines.cart_session.models import CartLine, CartLineView, CartSession, CartSessionView
from engines.cart_session.store import CartSessionStore
from engines.promotion.catalog import PromotionCatalogReader
from engines.promotion.errors import EvaluationUnavailable
from engines.promotion.evaluator import evaluate_promotions, undiscounted_result
from engines.promotion.models import PricingLine, Promotion, PromotionApplicationResult

logger = logging.getLogger("tillpoint.cart")

CATALOG_WORKERS = 4


class CartSessionEngine:
    """
    Cart session operations for the tenant active at call time.

    Usage:
        with CartSessionEngine(
            store=InMemoryCartSessionStore(),
            catalog=CachingPromotionCatalog(db_catalog, clock=clock),
            tenant_context=RequestTenantContext(),
            clock=SystemClock(),
        ) as engine:
            view = engine.create_session(currency="EUR")
            view = engine.add_item(view.session_id, product_id=pid,
                                   product_name="Espresso", unit_price="2.50",
                                   quantity=2)

    The engine owns a worker pool when a catalog timeout is
    configured; leaving the block (or calling close()) shuts it down.
    """

    def __init__(
        self,
        store: CartSessionStore,
        catalog: PromotionCatalogReader,
        tenant_context: TenantContext,
        clock: Clock,
        config: Optional[CartEngineConfig] = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._tenants = tenant_context
        self._clock = clock
        self._config = config if config is not None else CartEngineConfig.from_settings()
        self._health_lock = threading.Lock()
        self._health: Dict[uuid.UUID, SubsystemHealth] = {}
        self._executor: Optional[ThreadPoolExecutor] = None
        if self._config.catalog_timeout_seconds is not None:
            self._executor = ThreadPoolExecutor(
                max_workers=CATALOG_WORKERS, thread_name_prefix="tillpoint-catalog"
            )

    @property
    def config(self) -> CartEngineConfig:
        return self._config

    def promotion_health(self, tenant_id: uuid.UUID) -> SubsystemHealth:
        """Promotion catalog health as seen by one tenant."""
        with self._health_lock:
            health = self._health.get(tenant_id)
        return health if health is not None else SubsystemHealth(f"promotion_catalog:{tenant_id}")

    def _health_for(self, tenant_id: uuid.UUID) -> SubsystemHealth:
        with self._health_lock:
            health = self._health.get(tenant_id)
            if health is None:
                health = SubsystemHealth(f"promotion_catalog:{tenant_id}")
                self._health[tenant_id] = health
            return health

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> "CartSessionEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ══════════════════════════════════════════════════════════
    # SESSION LIFECYCLE
    # ══════════════════════════════════════════════════════════

    def create_session(
        self,
        customer_id: Optional[uuid.UUID] = None,
        sales_channel: Optional[str] = None,
        currency: Optional[str] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CartSessionView:
        tenant_id = self._tenants.get_active_tenant_id()
        if tenant_id is None:
            raise InvalidTenant("Cannot create a cart session without an active tenant.")

        request = CreateCartSessionRequest(
            currency=currency if currency is not None else self._config.default_currency,
            customer_id=customer_id,
            sales_channel=sales_channel,
        )
        check_cancelled(cancel_token)

        now = self._clock.now_utc()
        session = self._store.create(CartSession(
            session_id=uuid.uuid4(),
            tenant_id=tenant_id,
            currency=request.currency,
            created_at=now,
            updated_at=now,
            customer_id=request.customer_id,
            sales_channel=request.sales_channel,
        ))
        logger.info("Created cart session %s for tenant %s", session.session_id, tenant_id)
        return self._build_view(session, cancel_token)

    def get_session(
        self,
        session_id: uuid.UUID,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[CartSessionView]:
        tenant_id = self._tenants.get_active_tenant_id()
        if tenant_id is None:
            return None
        session = self._store.get(tenant_id, session_id)
        if session is None:
            return None
        return self._build_view(session, cancel_token)

    def get_totals(
        self,
        session_id: uuid.UUID,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[CartSessionView]:
        """Fresh recalculation; cart contents are not touched."""
        return self.get_session(session_id, cancel_token=cancel_token)

    def delete_session(
        self,
        session_id: uuid.UUID,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bool:
        tenant_id = self._tenants.get_active_tenant_id()
        if tenant_id is None:
            return False
        check_cancelled(cancel_token)
        deleted = self._store.delete(tenant_id, session_id)
        if deleted:
            logger.info("Deleted cart session %s for tenant %s", session_id, tenant_id)
        return deleted

    def evict_idle_sessions(
        self,
        max_idle_seconds: Optional[float] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> int:
        """Reaper entry point; a no-op unless an idle TTL is configured or given."""
        ttl = max_idle_seconds if max_idle_seconds is not None else self._config.session_idle_ttl_seconds
        if ttl is None:
            return 0
        check_cancelled(cancel_token)
        return self._store.evict_idle(self._clock.now_utc(), ttl)

    # ══════════════════════════════════════════════════════════
    # MUTATIONS
    # ══════════════════════════════════════════════════════════

    def add_item(
        self,
        session_id: uuid.UUID,
        product_id: uuid.UUID,
        product_name: str,
        unit_price,
        quantity: int,
        product_code: Optional[str] = None,
        category_ids: Iterable[uuid.UUID] = (),
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[CartSessionView]:
        """Append a line, or increase the quantity of the product's existing line."""
        request = AddCartItemRequest(
            product_id=product_id,
            product_name=product_name,
            unit_price=unit_price,
            quantity=quantity,
            product_code=product_code,
            category_ids=frozenset(category_ids or ()),
        )

        def _add(session: CartSession) -> None:
            line = session.find_product_line(request.product_id)
            if line is not None:
                line.quantity += request.quantity
                return
            session.items.append(CartLine(
                line_id=uuid.uuid4(),
                product_id=request.product_id,
                product_name=request.product_name,
                unit_price=request.unit_price,
                quantity=request.quantity,
                category_ids=request.category_ids,
                product_code=request.product_code,
            ))

        return self._mutate(session_id, _add, cancel_token)

    def remove_item(
        self,
        session_id: uuid.UUID,
        line_id: uuid.UUID,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[CartSessionView]:
        request = RemoveCartItemRequest(line_id=line_id)

        def _remove(session: CartSession) -> None:
            session.remove_line(request.line_id)

        return self._mutate(session_id, _remove, cancel_token)

    def update_item_quantity(
        self,
        session_id: uuid.UUID,
        line_id: uuid.UUID,
        quantity: int,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[CartSessionView]:
        request = UpdateCartItemQuantityRequest(line_id=line_id, quantity=quantity)

        def _update(session: CartSession) -> None:
            if request.removes_line:
                session.remove_line(request.line_id)
                return
            line = session.find_line(request.line_id)
            if line is not None:
                line.quantity = request.quantity

        return self._mutate(session_id, _update, cancel_token)

    def apply_coupons(
        self,
        session_id: uuid.UUID,
        codes: Sequence[str],
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[CartSessionView]:
        """Replace the session's coupon set."""
        request = ApplyCouponsRequest(
            codes=codes, max_code_length=self._config.max_coupon_code_length
        )

        def _apply(session: CartSession) -> None:
            session.coupon_codes = list(request.codes)

        return self._mutate(session_id, _apply, cancel_token)

    def clear(
        self,
        session_id: uuid.UUID,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Optional[CartSessionView]:
        """Empty lines and coupons; identity and metadata stay."""
        return self._mutate(session_id, CartSession.empty, cancel_token)

    def _mutate(
        self,
        session_id: uuid.UUID,
        change: Callable[[CartSession], None],
        cancel_token: Optional[CancellationToken],
    ) -> Optional[CartSessionView]:
        tenant_id = self._tenants.get_active_tenant_id()
        if tenant_id is None:
            return None

        def _apply(session: CartSession) -> CartSessionView:
            check_cancelled(cancel_token)
            change(session)
            session.updated_at = self._clock.now_utc()
            view = self._build_view(session, cancel_token)
            check_cancelled(cancel_token)
            return view

        view = self._store.mutate(tenant_id, session_id, _apply)
        if view is None:
            logger.debug("Cart session %s not found for tenant %s", session_id, tenant_id)
        return view

    # ══════════════════════════════════════════════════════════
    # RECALCULATION
    # ══════════════════════════════════════════════════════════

    def _build_view(
        self,
        session: CartSession,
        cancel_token: Optional[CancellationToken],
    ) -> CartSessionView:
        lines = session.pricing_lines()
        if not lines:
            return _compose_view(session, undiscounted_result(lines), degraded=False)

        now = self._clock.now_utc()
        try:
            candidates = self._fetch_candidates(session, now, cancel_token)
            result = self._evaluate(session, lines, candidates, now)
        except EvaluationUnavailable as exc:
            degraded = self._degrade(session, lines, str(exc), now)
            return _compose_view(session, degraded, degraded=True)

        if not result.success:
            reason = "; ".join(result.messages) or "promotion evaluation unsuccessful"
            degraded = self._degrade(session, lines, reason, now, messages=result.messages)
            return _compose_view(session, degraded, degraded=True)

        with self._health_lock:
            health = self._health.get(session.tenant_id)
        # tenants that never failed have no entry and stay NORMAL
        if health is not None and health.record_success():
            logger.info(
                "Promotion evaluation recovered for tenant %s (session %s)",
                session.tenant_id, session.session_id,
            )
        return _compose_view(session, result, degraded=False)

    def _fetch_candidates(
        self,
        session: CartSession,
        now: datetime,
        cancel_token: Optional[CancellationToken],
    ) -> List[Promotion]:
        check_cancelled(cancel_token)
        args = (session.tenant_id, session.customer_id, session.sales_channel, now)
        timeout = self._config.catalog_timeout_seconds

        if self._executor is None or timeout is None:
            try:
                candidates = self._read_catalog(*args)
            except OperationCancelled:
                raise
            except Exception as exc:
                raise EvaluationUnavailable("Promotion catalog failed", cause=exc) from exc
        else:
            future = self._executor.submit(self._read_catalog, *args)
            try:
                candidates = future.result(timeout=timeout)
            except FutureTimeout as exc:
                future.cancel()
                raise EvaluationUnavailable(
                    f"Promotion catalog timed out after {timeout}s"
                ) from exc
            except OperationCancelled:
                raise
            except Exception as exc:
                raise EvaluationUnavailable("Promotion catalog failed", cause=exc) from exc

        check_cancelled(cancel_token)
        return candidates

    def _read_catalog(self, *args) -> List[Promotion]:
        # readers may hand back lazy results (generators, querysets)
        return list(self._catalog.candidate_promotions(*args) or ())

    def _evaluate(
        self,
        session: CartSession,
        lines: Sequence[PricingLine],
        candidates: Sequence[Promotion],
        now: datetime,
    ) -> PromotionApplicationResult:
        try:
            return evaluate_promotions(
                lines,
                candidates,
                now=now,
                coupon_codes=session.coupon_codes,
                customer_id=session.customer_id,
                sales_channel=session.sales_channel,
                currency=session.currency,
                max_coupon_code_length=self._config.max_coupon_code_length,
            )
        except OperationCancelled:
            raise
        except Exception as exc:
            # malformed catalog data
            raise EvaluationUnavailable("Promotion evaluation failed", cause=exc) from exc

    def _degrade(
        self,
        session: CartSession,
        lines: Sequence[PricingLine],
        reason: str,
        now: datetime,
        messages: Sequence[str] = (),
    ) -> PromotionApplicationResult:
        health = self._health_for(session.tenant_id)
        if health.record_failure(reason, now):
            logger.warning(
                "Promotions DEGRADED for tenant %s, pricing carts without discounts: %s",
                session.tenant_id, reason,
            )
        else:
            logger.warning(
                "Promotions still unavailable for tenant %s (%d consecutive failures): %s",
                session.tenant_id, health.consecutive_failures, reason,
            )
        return undiscounted_result(lines, messages=messages)


# ══════════════════════════════════════════════════════════════
# VIEW COMPOSITION
# ══════════════════════════════════════════════════════════════

def _compose_view(
    session: CartSession,
    result: PromotionApplicationResult,
    *,
    degraded: bool,
) -> CartSessionView:
    by_line = {r.line_id: r for r in result.lines}
    items: List[CartLineView] = []
    for line in session.items:
        priced = by_line[line.line_id]
        items.append(CartLineView(
            line_id=line.line_id,
            product_id=line.product_id,
            product_name=line.product_name,
            unit_price=line.unit_price,
            quantity=line.quantity,
            category_ids=line.category_ids,
            product_code=line.product_code,
            original_line_total=priced.original_line_total,
            final_line_total=priced.final_line_total,
            discount_amount=priced.discount_amount,
            effective_discount_percentage=priced.effective_discount_percentage,
            applied_promotions=priced.applied_promotions,
        ))

    return CartSessionView(
        session_id=session.session_id,
        tenant_id=session.tenant_id,
        customer_id=session.customer_id,
        sales_channel=session.sales_channel,
        currency=session.currency,
        items=tuple(items),
        coupon_codes=tuple(session.coupon_codes),
        original_total=result.original_total,
        final_total=result.final_total,
        total_discount_amount=result.total_discount_amount,
        applied_promotions=result.applied_promotions,
        created_at=session.created_at,
        updated_at=session.updated_at,
        promotions_degraded=degraded,
        messages=result.messages,
    )
