"""
Tillpoint Core Resilience — Subsystem Health Modes
====================================================
Models degradation of a collaborator the cart depends on:
  NORMAL ↔ DEGRADED

The cart never fails because promotions are unavailable; it
flips the promotion health to DEGRADED, prices without
discounts, and recovers on the next successful evaluation.
"""

from __future__ import annotations

import threading
from datetime import datetime
from enum import Enum
from typing import Optional


# ══════════════════════════════════════════════════════════════
# RESILIENCE MODE ENUM
# ══════════════════════════════════════════════════════════════

class ResilienceMode(Enum):
    """Subsystem operational modes."""
    NORMAL = "NORMAL"       # Collaborator answering
    DEGRADED = "DEGRADED"   # Collaborator failing, fallback in use


# ══════════════════════════════════════════════════════════════
# SUBSYSTEM HEALTH STATE
# ══════════════════════════════════════════════════════════════

class SubsystemHealth:
    """
    Current health of one collaborator.

    Thread-safe: written from concurrent cart operations.
    Counts consecutive failures so operators can tell a blip
    from an outage.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._lock = threading.Lock()
        self._mode = ResilienceMode.NORMAL
        self._reason: Optional[str] = None
        self._since: Optional[datetime] = None
        self._consecutive_failures = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def mode(self) -> ResilienceMode:
        with self._lock:
            return self._mode

    @property
    def reason(self) -> Optional[str]:
        with self._lock:
            return self._reason

    @property
    def degraded_since(self) -> Optional[datetime]:
        with self._lock:
            return self._since

    @property
    def consecutive_failures(self) -> int:
        with self._lock:
            return self._consecutive_failures

    def is_degraded(self) -> bool:
        return self.mode == ResilienceMode.DEGRADED

    def record_failure(self, reason: str, at: datetime) -> bool:
        """
        Transition to DEGRADED.

        Returns True when this call caused the transition
        (first failure after a healthy period).
        """
        with self._lock:
            self._consecutive_failures += 1
            self._reason = reason
            if self._mode == ResilienceMode.DEGRADED:
                return False
            self._mode = ResilienceMode.DEGRADED
            self._since = at
            return True

    def record_success(self) -> bool:
        """
        Recover to NORMAL.

        Returns True when this call ended a degraded period.
        """
        with self._lock:
            was_degraded = self._mode == ResilienceMode.DEGRADED
            self._mode = ResilienceMode.NORMAL
            self._reason = None
            self._since = None
            self._consecutive_failures = 0
            return was_degraded

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "name": self._name,
                "mode": self._mode.value,
                "reason": self._reason,
                "degraded_since": self._since.isoformat() if self._since else None,
                "consecutive_failures": self._consecutive_failures,
            }
