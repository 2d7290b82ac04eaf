"""
Tillpoint Core Primitives — Reusable Building Blocks
=====================================================
Primitives are the shared, engine-agnostic helpers that the cart
and promotion engines consume. They are:

- Pure Python (no Django dependency)
- Deterministic (same input → same output)

Primitives:
    money — Decimal conversion, currency rounding, percentages
"""
