"""
Tillpoint Core Time — Public API
==================================
Explicit clock protocol and temporal helpers.
Doctrine: NO datetime.now() in pricing or session logic.
"""

from core.time.clock import Clock, FixedClock, SystemClock
from core.time.temporal import TimeWindow, is_expired, within_time_of_day

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "TimeWindow",
    "is_expired",
    "within_time_of_day",
]
