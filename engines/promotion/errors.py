"""
Tillpoint Promotion Engine — Errors
=====================================
Engine-internal failures of the promotion subsystem.

These never reach end users: the cart engine catches them and
prices the cart without discounts.
"""

from __future__ import annotations

from typing import Optional


class PromotionError(Exception):
    """Base error for promotion subsystem operations."""


class EvaluationUnavailable(PromotionError):
    """The promotion catalog failed, timed out, or returned garbage."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        if cause is not None:
            message = f"{message}: {type(cause).__name__}: {cause}"
        super().__init__(message)


class PromotionUsageExhausted(PromotionError):
    """A promotion reached max_uses."""

    def __init__(self, promotion_id, max_uses: int):
        self.promotion_id = promotion_id
        self.max_uses = max_uses
        super().__init__(
            f"Promotion '{promotion_id}' already used {max_uses} time(s)."
        )
