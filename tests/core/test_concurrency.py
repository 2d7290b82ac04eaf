"""
Tests for core.concurrency — Keyed locks and cancellation.
"""

import threading

import pytest

from core.concurrency import CancellationToken, KeyedLockTable, OperationCancelled
from core.concurrency.cancellation import check_cancelled


class TestKeyedLockTable:
    def test_same_key_same_lock(self):
        table = KeyedLockTable()
        assert table.lock_for(("t1", "s1")) is table.lock_for(("t1", "s1"))
        assert len(table) == 1

    def test_different_keys_different_locks(self):
        table = KeyedLockTable()
        assert table.lock_for(("t1", "s1")) is not table.lock_for(("t2", "s1"))

    def test_hold_is_reentrant(self):
        table = KeyedLockTable()
        with table.hold("k"):
            with table.hold("k"):
                pass

    def test_different_keys_do_not_block(self):
        table = KeyedLockTable()
        entered = threading.Event()

        def other():
            with table.hold("k2"):
                entered.set()

        with table.hold("k1"):
            t = threading.Thread(target=other)
            t.start()
            assert entered.wait(timeout=5)
            t.join()

    def test_same_key_serializes(self):
        table = KeyedLockTable()
        counter = {"value": 0}

        def bump():
            for _ in range(200):
                with table.hold("k"):
                    current = counter["value"]
                    counter["value"] = current + 1

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counter["value"] == 1600

    def test_discard(self):
        table = KeyedLockTable()
        table.lock_for("k")
        table.discard("k")
        table.discard("missing")
        assert len(table) == 0


class TestCancellationToken:
    def test_initially_not_cancelled(self):
        token = CancellationToken()
        assert not token.cancelled
        token.raise_if_cancelled()

    def test_cancel_with_reason(self):
        token = CancellationToken()
        token.cancel("client disconnected")
        assert token.cancelled
        with pytest.raises(OperationCancelled, match="client disconnected") as exc_info:
            token.raise_if_cancelled()
        assert exc_info.value.reason == "client disconnected"

    def test_first_reason_wins(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        assert token.reason == "first"

    def test_wait(self):
        token = CancellationToken()
        assert token.wait(timeout=0.01) is False
        token.cancel()
        assert token.wait(timeout=0.01) is True

    def test_check_cancelled_tolerates_none(self):
        check_cancelled(None)

    def test_default_message(self):
        assert str(OperationCancelled()) == "Operation cancelled by caller."
