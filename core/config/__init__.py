"""
Tillpoint Core Config — Public API
====================================
Deployment-tunable settings for the cart engine.
"""

from core.config.cart import SETTINGS_NAME, CartEngineConfig

__all__ = [
    "CartEngineConfig",
    "SETTINGS_NAME",
]
