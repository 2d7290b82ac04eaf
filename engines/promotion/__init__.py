"""
Tillpoint Promotion Engine — Public API
=========================================
Promotion model, catalog readers and the pure rule evaluator.
"""

from engines.promotion.catalog import (
    CachingPromotionCatalog,
    InMemoryPromotionCatalog,
    PromotionCatalogReader,
)
from engines.promotion.errors import (
    EvaluationUnavailable,
    PromotionError,
    PromotionUsageExhausted,
)
from engines.promotion.evaluator import evaluate_promotions, normalize_coupon
from engines.promotion.models import (
    AppliedPromotion,
    BundleComponent,
    DiscountType,
    LineResult,
    PricingLine,
    Promotion,
    PromotionApplicationResult,
    PromotionRule,
    RuleType,
)

__all__ = [
    "AppliedPromotion",
    "BundleComponent",
    "CachingPromotionCatalog",
    "DiscountType",
    "EvaluationUnavailable",
    "InMemoryPromotionCatalog",
    "LineResult",
    "PricingLine",
    "Promotion",
    "PromotionApplicationResult",
    "PromotionCatalogReader",
    "PromotionError",
    "PromotionRule",
    "PromotionUsageExhausted",
    "RuleType",
    "evaluate_promotions",
    "normalize_coupon",
]
