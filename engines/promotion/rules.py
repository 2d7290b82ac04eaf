"""
Tillpoint Promotion Engine — Rule Conditions & Effects
========================================================
Rule applicability is a conjunction of simple predicates
(channel, customer, weekday, time of day, order threshold);
target lines are narrowed by product and category.

Effects are dispatched by RuleType through RULE_APPLIERS. Every
effect goes through LineState.take(), which clamps so a line's
total never drops below zero.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from core.primitives.money import HUNDRED, ZERO, round_currency
from core.time.temporal import within_time_of_day
from engines.promotion.models import (
    DiscountType,
    PricingLine,
    Promotion,
    PromotionRule,
    RuleType,
)


# ══════════════════════════════════════════════════════════════
# EVALUATION CONTEXT & WORKING STATE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EvaluationContext:
    now: datetime
    subtotal: Decimal
    customer_id: Optional[uuid.UUID] = None
    sales_channel: Optional[str] = None


class LineState:
    """Running totals of one line during a single evaluation pass."""

    def __init__(self, line: PricingLine) -> None:
        self.line = line
        self.original_total = round_currency(line.line_total)
        self.final_total = self.original_total
        self.contributions: Dict[uuid.UUID, Decimal] = {}

    def take(self, promotion: Promotion, amount: Decimal) -> Decimal:
        """Apply a discount, clamped to what is left on the line."""
        amount = round_currency(min(max(amount, ZERO), self.final_total))
        if amount <= 0:
            return ZERO
        self.final_total = self.final_total - amount
        pid = promotion.promotion_id
        self.contributions[pid] = self.contributions.get(pid, ZERO) + amount
        return amount

    @property
    def discount(self) -> Decimal:
        return self.original_total - self.final_total


# ══════════════════════════════════════════════════════════════
# CONDITIONS
# ══════════════════════════════════════════════════════════════

def rule_applies(rule: PromotionRule, ctx: EvaluationContext) -> bool:
    """Context-level conditions; all configured ones must hold."""
    if rule.sales_channels and ctx.sales_channel and ctx.sales_channel.strip():
        if ctx.sales_channel.strip().casefold() not in rule.sales_channels:
            return False

    if rule.customer_ids:
        if ctx.customer_id is None or ctx.customer_id not in rule.customer_ids:
            return False

    if rule.valid_days and ctx.now.weekday() not in rule.valid_days:
        return False

    if not within_time_of_day(ctx.now, rule.start_time, rule.end_time):
        return False

    if rule.min_order_amount is not None and ctx.subtotal < rule.min_order_amount:
        return False

    return True


def target_lines(rule: PromotionRule, states: Sequence[LineState]) -> List[LineState]:
    targets = list(states)
    if rule.product_ids:
        targets = [s for s in targets if s.line.product_id in rule.product_ids]
    if rule.category_ids:
        targets = [s for s in targets if s.line.category_ids & rule.category_ids]
    return targets


# ══════════════════════════════════════════════════════════════
# EFFECTS
# ══════════════════════════════════════════════════════════════

RuleApplier = Callable[
    [PromotionRule, Promotion, Sequence[LineState], List[str]], Decimal
]


def _line_discount(rule: PromotionRule, state: LineState) -> Decimal:
    value = rule.discount_value
    if value is None or rule.discount_type is None:
        return ZERO
    if rule.discount_type == DiscountType.PERCENTAGE:
        return round_currency(state.final_total * value / HUNDRED)
    if rule.discount_type == DiscountType.FIXED_AMOUNT:
        return value
    return value * state.line.quantity


def apply_line_discount(rule, promotion, states, messages) -> Decimal:
    total = ZERO
    for state in target_lines(rule, states):
        total += state.take(promotion, _line_discount(rule, state))
    return total


def apply_category_discount(rule, promotion, states, messages) -> Decimal:
    if not rule.category_ids:
        return ZERO
    return apply_line_discount(rule, promotion, states, messages)


def _distribute(
    promotion: Promotion, targets: Sequence[LineState], amount: Decimal,
    weights: Sequence[Decimal],
) -> Decimal:
    """
    Split `amount` over targets proportionally to `weights`.

    The last target absorbs the rounding remainder so the shares add
    up to `amount` (less whatever clamping refuses).
    """
    total_weight = sum(weights, ZERO)
    if amount <= 0 or total_weight <= 0:
        return ZERO
    applied = ZERO
    remaining = amount
    for index, (state, weight) in enumerate(zip(targets, weights)):
        if index == len(targets) - 1:
            share = remaining
        else:
            share = min(round_currency(amount * weight / total_weight), remaining)
            remaining -= share
        applied += state.take(promotion, share)
    return applied


def apply_cart_amount_discount(rule, promotion, states, messages) -> Decimal:
    targets = [s for s in target_lines(rule, states) if s.final_total > 0]
    current_total = sum((s.final_total for s in states), ZERO)
    if rule.min_order_amount is not None and current_total < rule.min_order_amount:
        messages.append(
            f"Cart total {current_total:.2f} doesn't meet minimum "
            f"{rule.min_order_amount:.2f} for {promotion.name}"
        )
        return ZERO
    if rule.discount_value is None or rule.discount_type is None or not targets:
        return ZERO

    eligible_total = sum((s.final_total for s in targets), ZERO)
    if rule.discount_type == DiscountType.PERCENTAGE:
        discount = round_currency(eligible_total * rule.discount_value / HUNDRED)
    elif rule.discount_type == DiscountType.FIXED_AMOUNT:
        discount = min(rule.discount_value, eligible_total)
    else:
        units = sum(s.line.quantity for s in targets)
        discount = min(rule.discount_value * units, eligible_total)
    return _distribute(promotion, targets, discount, [s.final_total for s in targets])


def apply_buy_x_get_y(rule, promotion, states, messages) -> Decimal:
    required, free = rule.required_quantity, rule.free_quantity
    if not required or not free or required <= 0 or free <= 0:
        return ZERO
    total = ZERO
    for state in target_lines(rule, states):
        free_units = (state.line.quantity // required) * free
        if free_units > 0:
            total += state.take(promotion, state.line.unit_price * free_units)
    return total


def apply_fixed_price(rule, promotion, states, messages) -> Decimal:
    if rule.fixed_price is None:
        return ZERO
    total = ZERO
    for state in target_lines(rule, states):
        new_total = round_currency(rule.fixed_price * state.line.quantity)
        if new_total < state.final_total:
            total += state.take(promotion, state.final_total - new_total)
    return total


def apply_bundle(rule, promotion, states, messages) -> Decimal:
    if rule.fixed_price is None or len(rule.bundle) < 2:
        return ZERO
    by_product = {s.line.product_id: s for s in states}
    members: List[LineState] = []
    weights: List[Decimal] = []
    for component in rule.bundle:
        state = by_product.get(component.product_id)
        if state is None or state.line.quantity < component.quantity:
            return ZERO
        members.append(state)
        weights.append(state.line.unit_price * component.quantity)

    bundle_total = sum(weights, ZERO)
    discount = round_currency(bundle_total - rule.fixed_price)
    if discount <= 0:
        return ZERO
    return _distribute(promotion, members, discount, weights)


RULE_APPLIERS: Dict[RuleType, RuleApplier] = {
    RuleType.DISCOUNT: apply_line_discount,
    RuleType.CATEGORY_DISCOUNT: apply_category_discount,
    RuleType.CART_AMOUNT_DISCOUNT: apply_cart_amount_discount,
    RuleType.BUY_X_GET_Y: apply_buy_x_get_y,
    RuleType.FIXED_PRICE: apply_fixed_price,
    RuleType.BUNDLE: apply_bundle,
    RuleType.COUPON: apply_line_discount,
    RuleType.TIME_LIMITED: apply_line_discount,
    RuleType.EXCLUSIVE: apply_line_discount,
}


def apply_rule(
    rule: PromotionRule,
    promotion: Promotion,
    states: Sequence[LineState],
    messages: List[str],
) -> Decimal:
    applier = RULE_APPLIERS.get(rule.rule_type)
    if applier is None:
        return ZERO
    return applier(rule, promotion, states, messages)
