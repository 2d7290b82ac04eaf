"""
Tillpoint Cart Session Engine — Data Model
============================================
CartSession / CartLine are the mutable state held by the store.
CartSessionView / CartLineView are the frozen snapshots returned
to callers after every recalculation.

Sessions are only ever mutated on a working copy handed out by the
store; copy() detaches every line so a discarded working copy
leaves the stored session untouched.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from core.primitives.money import ZERO
from engines.promotion.models import AppliedPromotion, PricingLine


# ══════════════════════════════════════════════════════════════
# MUTABLE STATE
# ══════════════════════════════════════════════════════════════

@dataclass
class CartLine:
    line_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    unit_price: Decimal
    quantity: int
    category_ids: FrozenSet[uuid.UUID] = frozenset()
    product_code: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_pricing_line(self) -> PricingLine:
        return PricingLine(
            line_id=self.line_id,
            product_id=self.product_id,
            product_name=self.product_name,
            unit_price=self.unit_price,
            quantity=self.quantity,
            category_ids=self.category_ids,
            product_code=self.product_code,
        )


@dataclass
class CartSession:
    """
    One in-progress cart, owned by exactly one tenant.

    coupon_codes keeps the first spelling of each code; matching
    against promotions is case-insensitive.
    """

    session_id: uuid.UUID
    tenant_id: uuid.UUID
    currency: str
    created_at: datetime
    updated_at: datetime
    customer_id: Optional[uuid.UUID] = None
    sales_channel: Optional[str] = None
    items: List[CartLine] = field(default_factory=list)
    coupon_codes: List[str] = field(default_factory=list)

    def copy(self) -> "CartSession":
        return replace(
            self,
            items=[replace(line) for line in self.items],
            coupon_codes=list(self.coupon_codes),
        )

    def find_line(self, line_id: uuid.UUID) -> Optional[CartLine]:
        for line in self.items:
            if line.line_id == line_id:
                return line
        return None

    def find_product_line(self, product_id: uuid.UUID) -> Optional[CartLine]:
        for line in self.items:
            if line.product_id == product_id:
                return line
        return None

    def remove_line(self, line_id: uuid.UUID) -> bool:
        before = len(self.items)
        self.items = [line for line in self.items if line.line_id != line_id]
        return len(self.items) != before

    def empty(self) -> None:
        self.items = []
        self.coupon_codes = []

    def pricing_lines(self) -> Tuple[PricingLine, ...]:
        return tuple(line.to_pricing_line() for line in self.items)


# ══════════════════════════════════════════════════════════════
# VIEWS (frozen snapshots)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CartLineView:
    line_id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    unit_price: Decimal
    quantity: int
    category_ids: FrozenSet[uuid.UUID]
    product_code: Optional[str]
    original_line_total: Decimal
    final_line_total: Decimal
    discount_amount: Decimal = ZERO
    effective_discount_percentage: Decimal = ZERO
    applied_promotions: Tuple[AppliedPromotion, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line_id": str(self.line_id),
            "product_id": str(self.product_id),
            "product_code": self.product_code,
            "product_name": self.product_name,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "category_ids": sorted(str(c) for c in self.category_ids),
            "original_line_total": str(self.original_line_total),
            "final_line_total": str(self.final_line_total),
            "discount_amount": str(self.discount_amount),
            "effective_discount_percentage": str(self.effective_discount_percentage),
            "applied_promotions": [p.to_dict() for p in self.applied_promotions],
        }


@dataclass(frozen=True)
class CartSessionView:
    """Fully recalculated snapshot of a cart session."""

    session_id: uuid.UUID
    tenant_id: uuid.UUID
    customer_id: Optional[uuid.UUID]
    sales_channel: Optional[str]
    currency: str
    items: Tuple[CartLineView, ...]
    coupon_codes: Tuple[str, ...]
    original_total: Decimal
    final_total: Decimal
    total_discount_amount: Decimal
    applied_promotions: Tuple[AppliedPromotion, ...]
    created_at: datetime
    updated_at: datetime
    promotions_degraded: bool = False
    messages: Tuple[str, ...] = ()

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    def line_for_product(self, product_id: uuid.UUID) -> Optional[CartLineView]:
        for line in self.items:
            if line.product_id == product_id:
                return line
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": str(self.session_id),
            "customer_id": str(self.customer_id) if self.customer_id else None,
            "sales_channel": self.sales_channel,
            "currency": self.currency,
            "items": [line.to_dict() for line in self.items],
            "coupon_codes": list(self.coupon_codes),
            "original_total": str(self.original_total),
            "final_total": str(self.final_total),
            "total_discount_amount": str(self.total_discount_amount),
            "applied_promotions": [p.to_dict() for p in self.applied_promotions],
            "promotions_degraded": self.promotions_degraded,
            "messages": list(self.messages),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
