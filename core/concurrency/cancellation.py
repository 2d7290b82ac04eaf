"""
Tillpoint Core Concurrency — Cooperative Cancellation
=======================================================
A caller-owned signal checked by long operations at safe points.

Cancellation never interrupts a running step; the operation
notices the signal at its next checkpoint and raises
OperationCancelled before committing anything.
"""

from __future__ import annotations

import threading
from typing import Optional


class OperationCancelled(Exception):
    """The caller cancelled the operation; nothing was committed."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(reason or "Operation cancelled by caller.")


class CancellationToken:
    """
    Thread-safe one-shot cancellation flag.

    Usage:
        token = CancellationToken()
        worker = threading.Thread(target=engine.get_totals,
                                  args=(sid,), kwargs={"cancel_token": token})
        token.cancel("client disconnected")
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled(self._reason)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or timeout; returns the cancelled flag."""
        return self._event.wait(timeout)


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """Checkpoint helper tolerating a missing token."""
    if token is not None:
        token.raise_if_cancelled()
