"""
Tillpoint Promotion Engine — Data Model
=========================================
Immutable promotion definitions (read from the catalog) and the
immutable price breakdown the evaluator produces.

Promotions and rules are frozen: one evaluation can never alter
what the catalog handed it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, time
from decimal import Decimal
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from core.primitives.money import ZERO, to_money
from core.time.temporal import TimeWindow


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class RuleType(Enum):
    DISCOUNT = "DISCOUNT"
    CATEGORY_DISCOUNT = "CATEGORY_DISCOUNT"
    CART_AMOUNT_DISCOUNT = "CART_AMOUNT_DISCOUNT"
    BUY_X_GET_Y = "BUY_X_GET_Y"
    FIXED_PRICE = "FIXED_PRICE"
    BUNDLE = "BUNDLE"
    COUPON = "COUPON"
    TIME_LIMITED = "TIME_LIMITED"
    EXCLUSIVE = "EXCLUSIVE"


class DiscountType(Enum):
    PERCENTAGE = "PERCENTAGE"                        # % of the line's current total
    FIXED_AMOUNT = "FIXED_AMOUNT"                    # flat amount per line
    FIXED_AMOUNT_PER_UNIT = "FIXED_AMOUNT_PER_UNIT"  # flat amount × quantity


# Rule types whose effect is a plain discount on target lines.
LINE_DISCOUNT_RULE_TYPES = frozenset({
    RuleType.DISCOUNT,
    RuleType.CATEGORY_DISCOUNT,
    RuleType.COUPON,
    RuleType.TIME_LIMITED,
    RuleType.EXCLUSIVE,
})


# ══════════════════════════════════════════════════════════════
# PROMOTION RULE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BundleComponent:
    product_id: uuid.UUID
    quantity: int = 1

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError("Bundle component quantity must be > 0.")


@dataclass(frozen=True)
class PromotionRule:
    """
    Condition + effect pair.

    Conditions are conjunctive; an empty condition does not restrict.
    valid_days uses datetime.weekday() numbering (Monday=0).
    """

    rule_id: uuid.UUID
    rule_type: RuleType = RuleType.DISCOUNT
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None

    # ── conditions ────────────────────────────────────────────
    product_ids: FrozenSet[uuid.UUID] = frozenset()
    category_ids: FrozenSet[uuid.UUID] = frozenset()
    sales_channels: FrozenSet[str] = frozenset()
    customer_ids: FrozenSet[uuid.UUID] = frozenset()
    valid_days: FrozenSet[int] = frozenset()
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    min_order_amount: Optional[Decimal] = None

    # ── effect parameters ─────────────────────────────────────
    fixed_price: Optional[Decimal] = None
    required_quantity: Optional[int] = None
    free_quantity: Optional[int] = None
    bundle: Tuple[BundleComponent, ...] = ()

    def __post_init__(self):
        if not isinstance(self.rule_type, RuleType):
            raise ValueError(f"rule_type '{self.rule_type}' not valid.")
        if self.discount_value is not None:
            object.__setattr__(self, "discount_value", to_money(self.discount_value))
            if self.discount_value < 0:
                raise ValueError("discount_value must be >= 0.")
            if self.discount_type is None:
                raise ValueError("discount_value requires a discount_type.")
        if (
            self.discount_type == DiscountType.PERCENTAGE
            and self.discount_value is not None
            and self.discount_value > 100
        ):
            raise ValueError("Percentage discount must be <= 100.")
        if self.fixed_price is not None:
            object.__setattr__(self, "fixed_price", to_money(self.fixed_price))
            if self.fixed_price < 0:
                raise ValueError("fixed_price must be >= 0.")
        if self.min_order_amount is not None:
            object.__setattr__(self, "min_order_amount", to_money(self.min_order_amount))
        if any(d not in range(7) for d in self.valid_days):
            raise ValueError("valid_days must be weekday numbers 0..6.")
        for name in ("product_ids", "category_ids", "customer_ids", "valid_days"):
            object.__setattr__(self, name, frozenset(getattr(self, name)))
        object.__setattr__(
            self, "sales_channels",
            frozenset(c.strip().casefold() for c in self.sales_channels if c and c.strip()),
        )
        object.__setattr__(self, "bundle", tuple(self.bundle))


# ══════════════════════════════════════════════════════════════
# PROMOTION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Promotion:
    promotion_id: uuid.UUID
    name: str
    valid_from: datetime
    valid_to: datetime
    rules: Tuple[PromotionRule, ...] = ()
    priority: int = 0
    is_combinable: bool = True
    coupon_code: Optional[str] = None
    min_order_amount: Optional[Decimal] = None
    max_uses: Optional[int] = None
    description: str = ""

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("Promotion name must be non-empty.")
        if self.valid_from.tzinfo is None or self.valid_to.tzinfo is None:
            raise ValueError("Promotion validity bounds must be timezone-aware.")
        TimeWindow(start=self.valid_from, end=self.valid_to)
        if self.min_order_amount is not None:
            object.__setattr__(self, "min_order_amount", to_money(self.min_order_amount))
        if self.max_uses is not None and self.max_uses <= 0:
            raise ValueError("max_uses must be > 0 or None.")
        if self.coupon_code is not None and not self.coupon_code.strip():
            object.__setattr__(self, "coupon_code", None)
        object.__setattr__(self, "rules", tuple(self.rules))

    @property
    def validity(self) -> TimeWindow:
        return TimeWindow(start=self.valid_from, end=self.valid_to)

    @property
    def is_exclusive(self) -> bool:
        """Applying this promotion ends the evaluation pass."""
        return not self.is_combinable or any(
            r.rule_type == RuleType.EXCLUSIVE for r in self.rules
        )

    def with_rules(self, rules: Tuple[PromotionRule, ...]) -> "Promotion":
        return Promotion(
            promotion_id=self.promotion_id,
            name=self.name,
            valid_from=self.valid_from,
            valid_to=self.valid_to,
            rules=rules,
            priority=self.priority,
            is_combinable=self.is_combinable,
            coupon_code=self.coupon_code,
            min_order_amount=self.min_order_amount,
            max_uses=self.max_uses,
            description=self.description,
        )


# ══════════════════════════════════════════════════════════════
# EVALUATION INPUT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PricingLine:
    """A cart line as the evaluator sees it."""

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


# ══════════════════════════════════════════════════════════════
# EVALUATION OUTPUT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AppliedPromotion:
    promotion_id: uuid.UUID
    name: str
    discount_amount: Decimal

    def to_dict(self) -> dict:
        return {
            "promotion_id": str(self.promotion_id),
            "name": self.name,
            "discount_amount": str(self.discount_amount),
        }


@dataclass(frozen=True)
class LineResult:
    line_id: uuid.UUID
    original_line_total: Decimal
    final_line_total: Decimal
    discount_amount: Decimal
    effective_discount_percentage: Decimal
    applied_promotions: Tuple[AppliedPromotion, ...] = ()


@dataclass(frozen=True)
class PromotionApplicationResult:
    success: bool
    original_total: Decimal = ZERO
    final_total: Decimal = ZERO
    total_discount_amount: Decimal = ZERO
    applied_promotions: Tuple[AppliedPromotion, ...] = ()
    lines: Tuple[LineResult, ...] = ()
    messages: Tuple[str, ...] = field(default_factory=tuple)

    def line(self, line_id: uuid.UUID) -> Optional[LineResult]:
        for result in self.lines:
            if result.line_id == line_id:
                return result
        return None
