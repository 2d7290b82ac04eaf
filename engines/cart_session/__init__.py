"""
Tillpoint Cart Session Engine — Public API
============================================
Tenant-scoped cart sessions with promotion-aware totals.
"""

from engines.cart_session.errors import (
    CartSessionError,
    InvalidMutation,
    InvalidTenant,
    OperationCancelled,
)
from engines.cart_session.models import (
    CartLine,
    CartLineView,
    CartSession,
    CartSessionView,
)
from engines.cart_session.services import CartSessionEngine
from engines.cart_session.store import CartSessionStore, InMemoryCartSessionStore

__all__ = [
    "CartLine",
    "CartLineView",
    "CartSession",
    "CartSessionEngine",
    "CartSessionError",
    "CartSessionStore",
    "CartSessionView",
    "InMemoryCartSessionStore",
    "InvalidMutation",
    "InvalidTenant",
    "OperationCancelled",
]
