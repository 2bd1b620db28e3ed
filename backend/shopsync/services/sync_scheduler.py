"""
Sync Scheduler - periodic full ingestion for every tenant

One scheduler per process. Each tick enumerates the tenants and builds a
fresh IngestionService per tenant from (tenant id, credentials); nothing
is carried between ticks. A tenant that fails or exceeds its timeout is
reported and the cycle moves on to the next one.
"""
import time
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from shopsync.core.config import settings
from shopsync.core.database import SessionLocal
from shopsync.domain import Tenant
from shopsync.services.ingestion_service import IngestionReport, IngestionService
from shopsync.services.tenant_service import TenantService

logger = logging.getLogger(__name__)

IngestionServiceFactory = Callable[[Tenant], IngestionService]


@dataclass
class TenantSyncOutcome:
    tenant_id: int
    shop_domain: str
    success: bool
    report: Optional[IngestionReport] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tenant_id': self.tenant_id,
            'shop_domain': self.shop_domain,
            'success': self.success,
            'report': self.report.to_dict() if self.report else None,
            'error': self.error,
            'duration_seconds': self.duration_seconds,
        }


@dataclass
class SyncCycleResult:
    started_at: datetime
    finished_at: Optional[datetime] = None
    outcomes: List[TenantSyncOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)


async def sync_tenant(
    tenant: Tenant,
    service_factory: IngestionServiceFactory,
    timeout_seconds: Optional[float] = None,
) -> TenantSyncOutcome:
    """
    Full ingestion for one tenant, bounded by a timeout

    Never raises: failures and timeouts come back as success=False. Rows
    committed before a timeout stay committed.
    """
    start_time = time.time()
    timeout = timeout_seconds if timeout_seconds is not None else settings.SYNC_TENANT_TIMEOUT_SECONDS

    try:
        service = service_factory(tenant)
        report = await asyncio.wait_for(service.ingest_all(), timeout=timeout)
        outcome = TenantSyncOutcome(
            tenant_id=tenant.id,
            shop_domain=tenant.shop_domain,
            success=report.success,
            report=report,
            error='; '.join(report.errors) or None,
        )
    except asyncio.TimeoutError:
        logger.error(f"Sync for {tenant.shop_domain} timed out after {timeout}s")
        outcome = TenantSyncOutcome(
            tenant_id=tenant.id,
            shop_domain=tenant.shop_domain,
            success=False,
            error=f"timed out after {timeout}s",
        )
    except Exception as e:
        logger.error(f"Sync failed for {tenant.shop_domain}: {e}")
        outcome = TenantSyncOutcome(
            tenant_id=tenant.id,
            shop_domain=tenant.shop_domain,
            success=False,
            error=str(e),
        )

    outcome.duration_seconds = round(time.time() - start_time, 2)
    return outcome


class SyncScheduler:
    """
    Process-wide timer that runs a full sync cycle every `interval_seconds`
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        service_factory: Optional[IngestionServiceFactory] = None,
        interval_seconds: Optional[float] = None,
        tenant_timeout_seconds: Optional[float] = None,
        max_concurrent_tenants: Optional[int] = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.service_factory = service_factory or (
            lambda tenant: IngestionService.for_tenant(tenant, session_factory=self.session_factory)
        )
        self.interval_seconds = interval_seconds or settings.SYNC_INTERVAL_SECONDS
        self.tenant_timeout_seconds = tenant_timeout_seconds or settings.SYNC_TENANT_TIMEOUT_SECONDS
        self.max_concurrent_tenants = max(1, max_concurrent_tenants or settings.SYNC_MAX_CONCURRENT_TENANTS)
        self._task: Optional[asyncio.Task] = None
        self.last_cycle: Optional[SyncCycleResult] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_cycle(self) -> SyncCycleResult:
        """Sync every known tenant once"""
        cycle = SyncCycleResult(started_at=datetime.now(timezone.utc))
        logger.info("Starting scheduled data sync")

        tenants = TenantService(self.session_factory).list_all()
        semaphore = asyncio.Semaphore(self.max_concurrent_tenants)

        async def run(tenant: Tenant) -> TenantSyncOutcome:
            async with semaphore:
                logger.info(f"Syncing data for tenant: {tenant.shop_domain}")
                return await sync_tenant(tenant, self.service_factory, self.tenant_timeout_seconds)

        cycle.outcomes = list(await asyncio.gather(*(run(t) for t in tenants)))
        cycle.finished_at = datetime.now(timezone.utc)
        self.last_cycle = cycle

        logger.info(
            f"Scheduled data sync completed: {cycle.succeeded} tenant(s) ok, {cycle.failed} failed"
        )
        return cycle

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_cycle()
            except Exception as e:
                # Tenant enumeration failed; try again next tick
                logger.error(f"Scheduled sync error: {e}")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info(f"Data sync scheduled (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Data sync scheduler stopped")
