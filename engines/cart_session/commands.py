"""
Tillpoint Cart Session Engine — Request Commands
==================================================
Boundary validation: a request object either constructs cleanly
(normalized) or raises InvalidMutation with a RejectionReason.
Nothing invalid ever reaches the store.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import FrozenSet, Iterable, Optional, Tuple

from core.commands.rejection import ReasonCode, RejectionReason
from core.primitives.money import to_money
from engines.cart_session.errors import InvalidMutation
from engines.promotion.evaluator import MAX_COUPON_CODE_LENGTH, normalize_coupon


def _reject(code: str, message: str, policy_name: str) -> InvalidMutation:
    return InvalidMutation(RejectionReason(code=code, message=message, policy_name=policy_name))


def _require_uuid(value, code: str, label: str, policy_name: str) -> None:
    if not isinstance(value, uuid.UUID):
        raise _reject(code, f"{label} must be UUID.", policy_name)


def _require_int(value, label: str, policy_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _reject(ReasonCode.INVALID_QUANTITY, f"{label} must be an integer.", policy_name)


# ══════════════════════════════════════════════════════════════
# SESSION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CreateCartSessionRequest:
    currency: str
    customer_id: Optional[uuid.UUID] = None
    sales_channel: Optional[str] = None

    def __post_init__(self):
        policy = "create_cart_session"
        currency = self.currency.strip().upper() if isinstance(self.currency, str) else ""
        if len(currency) != 3 or not currency.isalpha():
            raise _reject(
                ReasonCode.INVALID_CURRENCY,
                f"Currency '{self.currency}' is not a 3-letter code.",
                policy,
            )
        object.__setattr__(self, "currency", currency)

        if self.customer_id is not None:
            _require_uuid(self.customer_id, ReasonCode.INVALID_CUSTOMER, "customer_id", policy)

        if self.sales_channel is not None:
            if not isinstance(self.sales_channel, str):
                raise _reject(
                    ReasonCode.INVALID_SALES_CHANNEL, "sales_channel must be a string.", policy
                )
            object.__setattr__(self, "sales_channel", self.sales_channel.strip() or None)


# ══════════════════════════════════════════════════════════════
# LINES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AddCartItemRequest:
    product_id: uuid.UUID
    product_name: str
    unit_price: Decimal
    quantity: int
    product_code: Optional[str] = None
    category_ids: FrozenSet[uuid.UUID] = frozenset()

    def __post_init__(self):
        policy = "add_cart_item"
        _require_uuid(self.product_id, ReasonCode.INVALID_PRODUCT, "product_id", policy)

        if not isinstance(self.product_name, str) or not self.product_name.strip():
            raise _reject(
                ReasonCode.INVALID_PRODUCT_NAME, "product_name must be non-empty.", policy
            )
        object.__setattr__(self, "product_name", self.product_name.strip())

        try:
            price = to_money(self.unit_price)
        except (TypeError, ValueError):
            raise _reject(
                ReasonCode.INVALID_UNIT_PRICE,
                f"unit_price {self.unit_price!r} is not a monetary amount.",
                policy,
            ) from None
        if price < 0:
            raise _reject(ReasonCode.INVALID_UNIT_PRICE, "unit_price must be >= 0.", policy)
        object.__setattr__(self, "unit_price", price)

        _require_int(self.quantity, "quantity", policy)
        if self.quantity <= 0:
            raise _reject(ReasonCode.INVALID_QUANTITY, "quantity must be > 0.", policy)

        categories = frozenset(self.category_ids or ())
        for category_id in categories:
            _require_uuid(category_id, ReasonCode.INVALID_CATEGORY, "category id", policy)
        object.__setattr__(self, "category_ids", categories)

        if self.product_code is not None:
            object.__setattr__(self, "product_code", str(self.product_code).strip() or None)


@dataclass(frozen=True)
class RemoveCartItemRequest:
    line_id: uuid.UUID

    def __post_init__(self):
        _require_uuid(self.line_id, ReasonCode.INVALID_LINE, "line_id", "remove_cart_item")


@dataclass(frozen=True)
class UpdateCartItemQuantityRequest:
    """quantity <= 0 removes the line."""

    line_id: uuid.UUID
    quantity: int

    def __post_init__(self):
        policy = "update_cart_item_quantity"
        _require_uuid(self.line_id, ReasonCode.INVALID_LINE, "line_id", policy)
        _require_int(self.quantity, "quantity", policy)

    @property
    def removes_line(self) -> bool:
        return self.quantity <= 0


# ══════════════════════════════════════════════════════════════
# COUPONS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ApplyCouponsRequest:
    """
    Replaces the coupon set.

    Blank entries are dropped; duplicates (case-insensitive) keep
    their first spelling. Codes are stored trimmed.
    """

    codes: Tuple[str, ...]
    max_code_length: int = MAX_COUPON_CODE_LENGTH

    def __post_init__(self):
        policy = "apply_coupons"
        if self.codes is None or isinstance(self.codes, (str, bytes)):
            raise _reject(
                ReasonCode.INVALID_COUPON_LIST, "codes must be a list of strings.", policy
            )
        try:
            raw = list(self.codes)
        except TypeError:
            raise _reject(
                ReasonCode.INVALID_COUPON_LIST, "codes must be a list of strings.", policy
            ) from None
        object.__setattr__(self, "codes", _clean_codes(raw, self.max_code_length, policy))


def _clean_codes(raw: Iterable, max_length: int, policy: str) -> Tuple[str, ...]:
    seen = set()
    cleaned = []
    for code in raw:
        if not isinstance(code, str):
            raise _reject(
                ReasonCode.INVALID_COUPON_LIST,
                f"Coupon code {code!r} is not a string.",
                policy,
            )
        trimmed = code.strip()
        if not trimmed:
            continue
        if len(trimmed) > max_length:
            raise _reject(
                ReasonCode.INVALID_COUPON_CODE,
                f"Coupon code '{trimmed}' exceeds {max_length} characters.",
                policy,
            )
        key = normalize_coupon(trimmed)
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(trimmed)
    return tuple(cleaned)
