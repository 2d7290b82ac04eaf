"""
Tillpoint Context — Public API
================================
Tenant context sources for cart session operations.
"""

from core.context.tenant_context import (
    RequestTenantContext,
    StaticTenantContext,
    TenantContext,
)

__all__ = [
    "TenantContext",
    "StaticTenantContext",
    "RequestTenantContext",
]
