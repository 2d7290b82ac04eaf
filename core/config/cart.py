"""
Tillpoint Core Config — Cart Engine Settings
==============================================
Doctrine: No tunables hardcoded in engine logic.
Currency default, catalog cache TTL, catalog timeout and idle
session TTL come from the TILLPOINT_CART Django setting, so
deployments adjust them without code changes.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from django.conf import settings

SETTINGS_NAME = "TILLPOINT_CART"


@dataclass(frozen=True)
class CartEngineConfig:
    """
    Tunables for the cart session engine and its collaborators.

    catalog_timeout_seconds None means the catalog call is made
    inline without a deadline. session_idle_ttl_seconds None
    disables idle eviction.
    """

    default_currency: str = "EUR"
    catalog_cache_ttl_seconds: float = 60
    catalog_cache_max_size: int = 1000
    catalog_timeout_seconds: Optional[float] = None
    session_idle_ttl_seconds: Optional[float] = None
    max_coupon_code_length: int = 50

    def __post_init__(self) -> None:
        if not self.default_currency or not self.default_currency.strip():
            raise ValueError("default_currency must be non-empty.")
        if self.catalog_cache_ttl_seconds <= 0:
            raise ValueError("catalog_cache_ttl_seconds must be > 0.")
        if self.catalog_cache_max_size <= 0:
            raise ValueError("catalog_cache_max_size must be > 0.")
        if self.catalog_timeout_seconds is not None and self.catalog_timeout_seconds <= 0:
            raise ValueError("catalog_timeout_seconds must be > 0 or None.")
        if self.session_idle_ttl_seconds is not None and self.session_idle_ttl_seconds <= 0:
            raise ValueError("session_idle_ttl_seconds must be > 0 or None.")
        if self.max_coupon_code_length <= 0:
            raise ValueError("max_coupon_code_length must be > 0.")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "CartEngineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown {SETTINGS_NAME} keys: {', '.join(unknown)}")
        return cls(**dict(values))

    @classmethod
    def from_settings(cls) -> "CartEngineConfig":
        """Build from django.conf.settings.TILLPOINT_CART (missing → defaults)."""
        return cls.from_mapping(getattr(settings, SETTINGS_NAME, {}) or {})
