"""
Tillpoint Promotion Engine — Rule Evaluator
=============================================
Pure function: cart lines + candidate promotions → price breakdown.

Pipeline:
  validate → filter (window, coupon) → threshold → rule conditions
  → sort (priority desc, name asc) → apply in order → aggregate

Exclusivity: a promotion that is not combinable (or carries an
EXCLUSIVE rule) ends the pass once it has contributed a discount.
Combinable promotions applied before it stay applied.

No side effects, no hidden state, no clock access: the evaluation
instant is an argument. Safe to call concurrently.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from core.primitives.money import ZERO, money_sum, percentage_of, round_currency
from engines.promotion.models import (
    AppliedPromotion,
    LineResult,
    PricingLine,
    Promotion,
    PromotionApplicationResult,
)
from engines.promotion.rules import EvaluationContext, LineState, apply_rule, rule_applies

logger = logging.getLogger("tillpoint.promotion")

MAX_COUPON_CODE_LENGTH = 50


# ══════════════════════════════════════════════════════════════
# COUPON NORMALIZATION
# ══════════════════════════════════════════════════════════════

def normalize_coupon(code: Optional[str]) -> str:
    """Trim + casefold: ' save10 ' and 'SAVE10' are the same coupon."""
    return (code or "").strip().casefold()


def coupon_set(codes: Iterable[str]) -> frozenset:
    return frozenset(n for n in (normalize_coupon(c) for c in codes) if n)


# ══════════════════════════════════════════════════════════════
# VALIDATION
# ══════════════════════════════════════════════════════════════

def validate_evaluation_input(
    lines: Sequence[PricingLine],
    coupon_codes: Sequence[str],
    currency: str,
    max_coupon_code_length: int = MAX_COUPON_CODE_LENGTH,
) -> List[str]:
    errors: List[str] = []
    if not currency or not currency.strip():
        errors.append("Currency is required")
    for line in lines:
        if line.unit_price < 0:
            errors.append(f"Unit price cannot be negative for product {line.product_name}")
        if line.quantity <= 0:
            errors.append(f"Quantity must be positive for product {line.product_name}")
    for code in coupon_codes:
        if not code or not code.strip() or len(code.strip()) > max_coupon_code_length:
            errors.append(f"Invalid coupon code format: {code}")
    return errors


# ══════════════════════════════════════════════════════════════
# SELECTION
# ══════════════════════════════════════════════════════════════

def promotion_sort_key(promotion: Promotion) -> Tuple[int, str, str]:
    return (-promotion.priority, promotion.name.casefold(), promotion.name)


def select_promotions(
    candidates: Iterable[Promotion],
    ctx: EvaluationContext,
    coupons: frozenset,
    messages: List[str],
) -> List[Promotion]:
    """Filter candidates for this cart and order them for application."""
    selected: List[Promotion] = []
    for promotion in candidates:
        if not promotion.validity.contains(ctx.now):
            continue

        if promotion.coupon_code is not None:
            if normalize_coupon(promotion.coupon_code) not in coupons:
                logger.debug(
                    "Skipping promotion %s - required coupon not provided",
                    promotion.name,
                )
                continue

        if (
            promotion.min_order_amount is not None
            and ctx.subtotal < promotion.min_order_amount
        ):
            messages.append(
                f"Cart total {ctx.subtotal:.2f} doesn't meet minimum "
                f"{promotion.min_order_amount:.2f} for {promotion.name}"
            )
            continue

        rules = tuple(r for r in promotion.rules if rule_applies(r, ctx))
        if not rules:
            continue
        selected.append(promotion if rules == promotion.rules else promotion.with_rules(rules))

    selected.sort(key=promotion_sort_key)
    return selected


# ══════════════════════════════════════════════════════════════
# EVALUATION
# ══════════════════════════════════════════════════════════════

def undiscounted_result(
    lines: Sequence[PricingLine],
    *,
    success: bool = True,
    messages: Sequence[str] = (),
) -> PromotionApplicationResult:
    line_results = tuple(
        LineResult(
            line_id=line.line_id,
            original_line_total=round_currency(line.line_total),
            final_line_total=round_currency(line.line_total),
            discount_amount=ZERO,
            effective_discount_percentage=ZERO,
        )
        for line in lines
    )
    total = money_sum(r.original_line_total for r in line_results)
    return PromotionApplicationResult(
        success=success,
        original_total=total,
        final_total=total,
        total_discount_amount=ZERO,
        lines=line_results,
        messages=tuple(messages),
    )


def evaluate_promotions(
    lines: Sequence[PricingLine],
    candidates: Iterable[Promotion],
    *,
    now: datetime,
    coupon_codes: Sequence[str] = (),
    customer_id: Optional[uuid.UUID] = None,
    sales_channel: Optional[str] = None,
    currency: str = "EUR",
    max_coupon_code_length: int = MAX_COUPON_CODE_LENGTH,
) -> PromotionApplicationResult:
    errors = validate_evaluation_input(lines, coupon_codes, currency, max_coupon_code_length)
    if errors:
        return undiscounted_result(lines, success=False, messages=errors)
    if not lines:
        return undiscounted_result(lines)

    subtotal = money_sum(round_currency(line.line_total) for line in lines)
    ctx = EvaluationContext(
        now=now,
        subtotal=subtotal,
        customer_id=customer_id,
        sales_channel=sales_channel,
    )
    messages: List[str] = []
    ordered = select_promotions(candidates, ctx, coupon_set(coupon_codes), messages)
    logger.debug("Found %d applicable promotions", len(ordered))

    states = [LineState(line) for line in lines]
    contributed: Dict[uuid.UUID, Decimal] = {}
    names: Dict[uuid.UUID, str] = {}

    for index, promotion in enumerate(ordered):
        amount = ZERO
        for rule in promotion.rules:
            amount += apply_rule(rule, promotion, states, messages)
        if amount <= 0:
            continue

        contributed[promotion.promotion_id] = contributed.get(promotion.promotion_id, ZERO) + amount
        names[promotion.promotion_id] = promotion.name

        if promotion.is_exclusive:
            messages.append(
                f"Exclusive promotion '{promotion.name}' applied - stopping further applications"
            )
            for skipped in ordered[index + 1:]:
                messages.append(
                    f"Skipped promotion '{skipped.name}' due to exclusive promotion already applied"
                )
            break

    line_results = tuple(_line_result(state, names) for state in states)
    final_total = money_sum(r.final_line_total for r in line_results)
    applied = tuple(
        AppliedPromotion(promotion_id=pid, name=names[pid], discount_amount=round_currency(amount))
        for pid, amount in contributed.items()
    )

    result = PromotionApplicationResult(
        success=True,
        original_total=subtotal,
        final_total=final_total,
        total_discount_amount=subtotal - final_total,
        applied_promotions=applied,
        lines=line_results,
        messages=tuple(messages),
    )
    logger.debug(
        "Promotion application completed. Original: %s, Final: %s, Discount: %s",
        result.original_total, result.final_total, result.total_discount_amount,
    )
    return result


def _line_result(state: LineState, names: Dict[uuid.UUID, str]) -> LineResult:
    return LineResult(
        line_id=state.line.line_id,
        original_line_total=state.original_total,
        final_line_total=state.final_total,
        discount_amount=state.discount,
        effective_discount_percentage=percentage_of(state.discount, state.original_total),
        applied_promotions=tuple(
            AppliedPromotion(promotion_id=pid, name=names[pid], discount_amount=amount)
            for pid, amount in state.contributions.items()
        ),
    )
