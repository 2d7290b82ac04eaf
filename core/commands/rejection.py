"""
Tillpoint Command Layer — Rejection Model
===========================================
Structured reasons for cart requests refused at the boundary.

A rejection is an explanation structure, carried by
InvalidMutation so transport layers can render it without
parsing exception text.

Every rejection must be:
- Deterministic (same input → same rejection)
- Machine-readable (code)
- Human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for request rejection.

    Fields:
        code:        Machine-readable rejection code (e.g. 'INVALID_QUANTITY').
        message:     Human-readable explanation.
        policy_name: Name of the validator that refused the request.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Context ───────────────────────────────────────────────
    NO_ACTIVE_TENANT = "NO_ACTIVE_TENANT"

    # ── Cart lines ────────────────────────────────────────────
    INVALID_PRODUCT = "INVALID_PRODUCT"
    INVALID_PRODUCT_NAME = "INVALID_PRODUCT_NAME"
    INVALID_UNIT_PRICE = "INVALID_UNIT_PRICE"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_CATEGORY = "INVALID_CATEGORY"
    INVALID_LINE = "INVALID_LINE"

    # ── Coupons ───────────────────────────────────────────────
    INVALID_COUPON_LIST = "INVALID_COUPON_LIST"
    INVALID_COUPON_CODE = "INVALID_COUPON_CODE"

    # ── Session metadata ──────────────────────────────────────
    INVALID_CURRENCY = "INVALID_CURRENCY"
    INVALID_SALES_CHANNEL = "INVALID_SALES_CHANNEL"
    INVALID_CUSTOMER = "INVALID_CUSTOMER"
