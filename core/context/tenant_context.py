"""
Tillpoint Context — TenantContext
===================================
Supplies the tenant the current call acts for.

Notes:
- Absence of a tenant is a fatal precondition for session
  creation and reads as "no session" for every lookup.
- RequestTenantContext binds the tenant per thread / task via
  contextvars, so one engine instance serves concurrent requests
  for different tenants.
"""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol


class TenantContext(Protocol):
    """Source of the active tenant for the current call."""

    def get_active_tenant_id(self) -> Optional[uuid.UUID]:
        """Return the active tenant id, or None when no tenant is bound."""
        ...  # pragma: no cover


@dataclass(frozen=True)
class StaticTenantContext:
    """
    Fixed tenant context.

    tenant_id None models an anonymous / unresolved caller.
    active=False models a suspended tenant: it behaves as absent.
    """

    tenant_id: Optional[uuid.UUID] = None
    active: bool = True

    def __post_init__(self):
        if self.tenant_id is not None and not isinstance(self.tenant_id, uuid.UUID):
            raise ValueError("tenant_id must be UUID or None.")

    def get_active_tenant_id(self) -> Optional[uuid.UUID]:
        if not self.active:
            return None
        return self.tenant_id


_CURRENT_TENANT: contextvars.ContextVar[Optional[uuid.UUID]] = contextvars.ContextVar(
    "tillpoint_current_tenant", default=None
)


class RequestTenantContext:
    """
    Context-local tenant binding for request handling.

    Usage:
        tenants = RequestTenantContext()
        with tenants.activate(tenant_id):
            engine.add_item(...)
    """

    def get_active_tenant_id(self) -> Optional[uuid.UUID]:
        return _CURRENT_TENANT.get()

    @contextmanager
    def activate(self, tenant_id: uuid.UUID) -> Iterator[uuid.UUID]:
        if not isinstance(tenant_id, uuid.UUID):
            raise ValueError("tenant_id must be UUID.")
        token = _CURRENT_TENANT.set(tenant_id)
        try:
            yield tenant_id
        finally:
            _CURRENT_TENANT.reset(token)
