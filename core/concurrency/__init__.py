"""
Tillpoint Core Concurrency — Public API
=========================================
Per-key locking and cooperative cancellation.
"""

from core.concurrency.cancellation import CancellationToken, OperationCancelled
from core.concurrency.key_locks import KeyedLockTable

__all__ = [
    "CancellationToken",
    "OperationCancelled",
    "KeyedLockTable",
]
