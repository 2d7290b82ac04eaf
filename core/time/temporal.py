"""
Tillpoint Core Time — Temporal Helpers
========================================
Pure functions for validity windows and idle expiry.
All functions take explicit datetime arguments — no hidden clock access.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional


# ══════════════════════════════════════════════════════════════
# TIME WINDOW — Closed interval [start, end]
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TimeWindow:
    """
    A closed time interval [start, end].

    Used for promotion validity: an evaluation instant equal to
    either bound is inside the window.

    Invariant: start <= end (enforced at construction).
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"TimeWindow start ({self.start}) must be <= end ({self.end})."
            )

    def contains(self, dt: datetime) -> bool:
        """Check if datetime falls within window (inclusive)."""
        return self.start <= dt <= self.end


# ══════════════════════════════════════════════════════════════
# PURE TEMPORAL FUNCTIONS
# ══════════════════════════════════════════════════════════════

def is_expired(last_seen: datetime, ttl_seconds: float, now: datetime) -> bool:
    """
    True when more than `ttl_seconds` elapsed since `last_seen`.

    All arguments are explicit; no hidden clock.
    """
    return (now - last_seen).total_seconds() > ttl_seconds


def within_time_of_day(
    moment: datetime, start: Optional[time], end: Optional[time]
) -> bool:
    """
    Check a time-of-day window (inclusive), ignoring the date part.

    A window is only enforced when both bounds are set.
    """
    if start is None or end is None:
        return True
    current = moment.timetz().replace(tzinfo=None)
    return start <= current <= end
