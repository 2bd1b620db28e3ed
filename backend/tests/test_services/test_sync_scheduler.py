"""
Tests for SyncScheduler and sync_tenant - per-tenant isolation and timeouts
"""
import time
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy import func, select

from shopsync.models import Customer
from shopsync.services.reconciler import Reconciler
from shopsync.services.sync_scheduler import SyncScheduler, sync_tenant
from shopify_fakes import FakeShopify, customer_payload


def _customers(session_factory, tenant_id):
    with session_factory() as session:
        return session.execute(
            select(func.count()).select_from(Customer).where(Customer.tenant_id == tenant_id)
        ).scalar_one()


class TestSyncTenant:

    async def test_success(self, tenant, make_service):
        shop = FakeShopify(tenant.shop_domain, customers=[customer_payload(1)])

        outcome = await sync_tenant(tenant, lambda t: make_service(t, shop), timeout_seconds=5)

        assert outcome.success is True
        assert outcome.report.customers.created == 1
        assert outcome.error is None

    async def test_timeout_is_reported(self, tenant):
        """Test a run exceeding its timeout is abandoned and reported as failed"""
        async def never_finishes():
            await asyncio.sleep(10)

        service = MagicMock()
        service.ingest_all = never_finishes

        outcome = await sync_tenant(tenant, lambda t: service, timeout_seconds=0.05)

        assert outcome.success is False
        assert 'timed out' in outcome.error

    async def test_timeout_interrupts_slow_store_writes(self, session_factory, tenant, make_service):
        """Test the timeout also stops a run that is busy writing records"""
        shop = FakeShopify(tenant.shop_domain, customers=[customer_payload(i) for i in range(1, 6)])
        real = Reconciler.reconcile_customer

        def slow_reconcile(reconciler, data):
            time.sleep(0.1)
            return real(reconciler, data)

        with patch.object(Reconciler, 'reconcile_customer', autospec=True, side_effect=slow_reconcile):
            start = time.monotonic()
            outcome = await sync_tenant(tenant, lambda t: make_service(t, shop), timeout_seconds=0.25)
            elapsed = time.monotonic() - start

            # Let the write already in flight finish before reading the store
            await asyncio.sleep(0.2)

        assert outcome.success is False
        assert 'timed out' in outcome.error
        assert elapsed < 0.45
        assert 0 < _customers(session_factory, tenant.id) < 5

    async def test_unexpected_error_is_reported(self, tenant):
        def broken_factory(t):
            raise RuntimeError("cannot build service")

        outcome = await sync_tenant(tenant, broken_factory, timeout_seconds=5)

        assert outcome.success is False
        assert outcome.error == "cannot build service"


class TestSyncScheduler:

    async def test_failing_tenant_does_not_block_others(
        self, session_factory, tenant, other_tenant, make_service
    ):
        """Test a revoked credential fails one tenant while the next still syncs"""
        # Arrange: tenant's token is revoked, other_tenant is healthy
        shops = {
            tenant.shop_domain: FakeShopify(
                tenant.shop_domain,
                customers=[customer_payload(1)],
                failures={'customers': 401, 'products': 401, 'orders': 401},
            ),
            other_tenant.shop_domain: FakeShopify(other_tenant.shop_domain, customers=[customer_payload(1)]),
        }
        scheduler = SyncScheduler(
            session_factory=session_factory,
            service_factory=lambda t: make_service(t, shops[t.shop_domain]),
            tenant_timeout_seconds=5,
        )

        # Act
        cycle = await scheduler.run_cycle()

        # Assert
        outcomes = {o.tenant_id: o for o in cycle.outcomes}
        assert outcomes[tenant.id].success is False
        assert '401' in outcomes[tenant.id].error
        assert outcomes[other_tenant.id].success is True
        assert (cycle.succeeded, cycle.failed) == (1, 1)
        assert _customers(session_factory, tenant.id) == 0
        assert _customers(session_factory, other_tenant.id) == 1
        assert scheduler.last_cycle is cycle

    async def test_timed_out_tenant_does_not_block_others(
        self, session_factory, tenant, other_tenant, make_service
    ):
        healthy = FakeShopify(other_tenant.shop_domain, customers=[customer_payload(1)])

        async def hang():
            await asyncio.sleep(10)

        stuck = MagicMock()
        stuck.ingest_all = hang

        def factory(t):
            return stuck if t.id == tenant.id else make_service(t, healthy)

        scheduler = SyncScheduler(
            session_factory=session_factory,
            service_factory=factory,
            tenant_timeout_seconds=0.05,
        )

        cycle = await scheduler.run_cycle()

        outcomes = {o.tenant_id: o for o in cycle.outcomes}
        assert outcomes[tenant.id].success is False
        assert outcomes[other_tenant.id].success is True
        assert _customers(session_factory, other_tenant.id) == 1

    async def test_concurrency_is_bounded(self, session_factory, tenant, other_tenant):
        """Test no more than max_concurrent_tenants runs overlap"""
        running = 0
        peak = 0

        async def ingest_all():
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return MagicMock(success=True, errors=[])

        def factory(t):
            service = MagicMock()
            service.ingest_all = ingest_all
            return service

        scheduler = SyncScheduler(
            session_factory=session_factory,
            service_factory=factory,
            tenant_timeout_seconds=5,
            max_concurrent_tenants=1,
        )

        cycle = await scheduler.run_cycle()

        assert len(cycle.outcomes) == 2
        assert peak == 1

    async def test_no_tenants(self, session_factory):
        cycle = await SyncScheduler(session_factory=session_factory).run_cycle()

        assert cycle.outcomes == []
        assert cycle.finished_at is not None

    async def test_start_and_stop(self, session_factory):
        scheduler = SyncScheduler(session_factory=session_factory, interval_seconds=3600)
        scheduler.run_cycle = AsyncMock()

        scheduler.start()
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert scheduler.running is True
        scheduler.run_cycle.assert_awaited_once()

        await scheduler.stop()
        assert scheduler.running is False
