"""
Tillpoint Core Resilience — Public API
========================================
Collaborator health tracking for graceful degradation.
"""

from core.resilience.modes import ResilienceMode, SubsystemHealth

__all__ = [
    "ResilienceMode",
    "SubsystemHealth",
]
