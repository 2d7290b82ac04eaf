"""
Tillpoint Cart Session Engine — Errors
========================================
Caller-visible failures. Missing sessions are not errors: every
lookup returns None instead.
"""

from __future__ import annotations

from core.commands.rejection import ReasonCode, RejectionReason
from core.concurrency import OperationCancelled


class CartSessionError(Exception):
    """Base error for cart session operations."""


class InvalidTenant(CartSessionError):
    """No active tenant at session-creation time."""

    def __init__(self, message: str = "No active tenant in context."):
        self.reason = RejectionReason(
            code=ReasonCode.NO_ACTIVE_TENANT,
            message=message,
            policy_name="require_active_tenant",
        )
        super().__init__(message)


class InvalidMutation(CartSessionError, ValueError):
    """A request refused at the boundary, before reaching the store."""

    def __init__(self, reason: RejectionReason):
        self.reason = reason
        super().__init__(f"{reason.code}: {reason.message}")

    @property
    def code(self) -> str:
        return self.reason.code


__all__ = [
    "CartSessionError",
    "InvalidMutation",
    "InvalidTenant",
    "OperationCancelled",
]
