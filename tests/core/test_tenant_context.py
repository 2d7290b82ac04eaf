"""
Tests for core.context — Tenant context sources.
"""

import threading
import uuid

import pytest

from core.context import RequestTenantContext, StaticTenantContext

TENANT_A = uuid.uuid4()
TENANT_B = uuid.uuid4()


class TestStaticTenantContext:
    def test_returns_tenant(self):
        assert StaticTenantContext(TENANT_A).get_active_tenant_id() == TENANT_A

    def test_no_tenant(self):
        assert StaticTenantContext().get_active_tenant_id() is None

    def test_inactive_tenant_reads_as_absent(self):
        ctx = StaticTenantContext(TENANT_A, active=False)
        assert ctx.get_active_tenant_id() is None

    def test_rejects_non_uuid(self):
        with pytest.raises(ValueError, match="UUID"):
            StaticTenantContext("tenant-a")


class TestRequestTenantContext:
    def test_unbound_is_none(self):
        assert RequestTenantContext().get_active_tenant_id() is None

    def test_activate_and_reset(self):
        ctx = RequestTenantContext()
        with ctx.activate(TENANT_A):
            assert ctx.get_active_tenant_id() == TENANT_A
            with ctx.activate(TENANT_B):
                assert ctx.get_active_tenant_id() == TENANT_B
            assert ctx.get_active_tenant_id() == TENANT_A
        assert ctx.get_active_tenant_id() is None

    def test_rejects_non_uuid(self):
        with pytest.raises(ValueError):
            with RequestTenantContext().activate("tenant-a"):
                pass

    def test_binding_is_per_thread(self):
        ctx = RequestTenantContext()
        seen = {}

        def worker(name, tenant_id, ready, go):
            with ctx.activate(tenant_id):
                ready.set()
                go.wait(timeout=5)
                seen[name] = ctx.get_active_tenant_id()

        go = threading.Event()
        ready_a, ready_b = threading.Event(), threading.Event()
        a = threading.Thread(target=worker, args=("a", TENANT_A, ready_a, go))
        b = threading.Thread(target=worker, args=("b", TENANT_B, ready_b, go))
        a.start()
        b.start()
        ready_a.wait(timeout=5)
        ready_b.wait(timeout=5)
        go.set()
        a.join()
        b.join()

        assert seen == {"a": TENANT_A, "b": TENANT_B}
        assert ctx.get_active_tenant_id() is None
