"""
Tillpoint Core Time — Explicit Clock Protocol
===============================================
Doctrine: NO datetime.now() inside pricing or session logic.
The cart engine asks its injected Clock for the evaluation
instant; promotion validity windows and session timestamps
are all derived from that single value per operation.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Protocol


# ══════════════════════════════════════════════════════════════
# CLOCK PROTOCOL
# ══════════════════════════════════════════════════════════════

class Clock(Protocol):
    """Injectable time source."""

    def now_utc(self) -> datetime:
        """Return current UTC time (timezone-aware)."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IMPLEMENTATIONS
# ══════════════════════════════════════════════════════════════

class SystemClock:
    """Production clock — real system time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Test clock — returns a pinned timestamp until moved.

    Usage:
        clock = FixedClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))
        engine = CartSessionEngine(..., clock=clock)
        clock.advance(3600)   # one hour later
    """

    def __init__(self, fixed_dt: datetime) -> None:
        self._lock = threading.Lock()
        self._fixed_dt = _require_aware(fixed_dt)

    def now_utc(self) -> datetime:
        with self._lock:
            return self._fixed_dt

    def advance(self, seconds: float) -> None:
        """Move the pinned time forward (multi-step test scenarios)."""
        with self._lock:
            self._fixed_dt = self._fixed_dt + timedelta(seconds=seconds)

    def set(self, fixed_dt: datetime) -> None:
        """Pin the clock to a new instant."""
        with self._lock:
            self._fixed_dt = _require_aware(fixed_dt)


def _require_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError("FixedClock requires timezone-aware datetime.")
    return dt.astimezone(timezone.utc)
