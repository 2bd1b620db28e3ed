"""
Sync API - Targeted and scheduled catalog ingestion endpoints
Designed to be called by operators or by cron-job.org style pingers

Endpoints:
- GET  /api/v1/sync/health                            - Health check (public)
- GET  /api/v1/sync/tenants/{tenant_id}/status        - Row counts per entity type (public)
- POST /api/v1/sync/tenants/{tenant_id}/all           - Full ingestion for one tenant (requires API key)
- POST /api/v1/sync/tenants/{tenant_id}/{entity}      - Re-sync customers, products or orders (requires API key)
- POST /api/v1/sync/cycle                             - One scheduler cycle over every tenant (requires API key)

Security:
- POST endpoints require X-Sync-Key header with valid SYNC_API_KEY
- GET endpoints are public (read-only, no credentials exposed)
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import sessionmaker

from shopsync.api.dependencies import (
    get_ingestion_service_factory,
    get_scheduler,
    get_session_factory,
    verify_sync_key,
)
from shopsync.domain import Tenant
from shopsync.services.ingestion_service import IngestionResult, IngestionService
from shopsync.services.sync_scheduler import SyncScheduler, TenantSyncOutcome
from shopsync.services.tenant_service import TenantNotFoundError, TenantService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/sync", tags=["Sync"])


class EntityType(str, Enum):
    customers = "customers"
    products = "products"
    orders = "orders"


# ============================================================================
# Response Models
# ============================================================================

class EntitySyncResponse(BaseModel):
    """Response model for one entity type"""
    success: bool
    message: str
    entity: str
    created: int
    updated: int
    skipped: int
    failed: int
    errors: List[str]
    duration_seconds: float


class FullSyncResponse(BaseModel):
    """Response model for a full tenant sync"""
    success: bool
    message: str
    tenant_id: int
    customers: Optional[EntitySyncResponse]
    products: Optional[EntitySyncResponse]
    orders: Optional[EntitySyncResponse]
    total_duration_seconds: float
    timestamp: datetime


class TenantSyncResponse(BaseModel):
    tenant_id: int
    shop_domain: str
    success: bool
    error: Optional[str]
    duration_seconds: float


class CycleResponse(BaseModel):
    """Response model for a scheduler cycle"""
    success: bool
    message: str
    tenants_synced: int
    tenants_failed: int
    outcomes: List[TenantSyncResponse]
    started_at: datetime
    finished_at: Optional[datetime]


class SyncStatusResponse(BaseModel):
    """Row counts for one tenant"""
    tenant_id: int
    shop_domain: str
    customers: int
    products: int
    orders: int
    order_items: int
    events: int


def _entity_response(result: IngestionResult) -> EntitySyncResponse:
    return EntitySyncResponse(
        success=result.success,
        message=f"{result.entity} sync completed" if result.success else f"{result.entity} sync failed",
        entity=result.entity,
        created=result.created,
        updated=result.updated,
        skipped=result.skipped,
        failed=result.failed,
        errors=[result.error] if result.error else [],
        duration_seconds=result.duration_seconds,
    )


def _tenant_response(outcome: TenantSyncOutcome) -> TenantSyncResponse:
    return TenantSyncResponse(
        tenant_id=outcome.tenant_id,
        shop_domain=outcome.shop_domain,
        success=outcome.success,
        error=outcome.error,
        duration_seconds=outcome.duration_seconds,
    )


def _load_tenant(session_factory: sessionmaker, tenant_id: int) -> Tenant:
    try:
        return TenantService(session_factory).get(tenant_id)
    except TenantNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


# ============================================================================
# Endpoints
# ============================================================================

@router.get("/health")
async def sync_health():
    """
    Simple health check for the sync service
    Returns quickly - useful for keep-alive pings
    """
    return {
        "status": "healthy",
        "service": "sync",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/tenants/{tenant_id}/status", response_model=SyncStatusResponse)
async def get_sync_status(
    tenant_id: int,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """Row counts per entity type for one tenant"""
    service = TenantService(session_factory)
    try:
        tenant = service.get(tenant_id)
        counts = service.get_status(tenant_id)
    except TenantNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return SyncStatusResponse(tenant_id=tenant.id, shop_domain=tenant.shop_domain, **counts)


@router.post("/tenants/{tenant_id}/all", response_model=FullSyncResponse, dependencies=[Depends(verify_sync_key)])
async def sync_tenant_all(
    tenant_id: int,
    session_factory: sessionmaker = Depends(get_session_factory),
    service_factory: Callable[[Tenant], IngestionService] = Depends(get_ingestion_service_factory),
):
    """
    Run a full ingestion for one tenant

    Customers and products are synced concurrently, orders after both.
    """
    tenant = _load_tenant(session_factory, tenant_id)
    start_time = datetime.now(timezone.utc)

    try:
        logger.info(f"Starting full sync for tenant {tenant_id}")
        report = await service_factory(tenant).ingest_all()
    except Exception as e:
        logger.error(f"Error in full sync for tenant {tenant_id}: {e}")
        end_time = datetime.now(timezone.utc)
        return FullSyncResponse(
            success=False,
            message=f"Sync failed: {str(e)}",
            tenant_id=tenant_id,
            customers=None,
            products=None,
            orders=None,
            total_duration_seconds=(end_time - start_time).total_seconds(),
            timestamp=end_time,
        )

    return FullSyncResponse(
        success=report.success,
        message="Full sync completed" if report.success else "Sync completed with errors",
        tenant_id=tenant_id,
        customers=_entity_response(report.customers),
        products=_entity_response(report.products),
        orders=_entity_response(report.orders),
        total_duration_seconds=report.duration_seconds,
        timestamp=datetime.now(timezone.utc),
    )


@router.post("/tenants/{tenant_id}/{entity}", response_model=EntitySyncResponse, dependencies=[Depends(verify_sync_key)])
async def sync_tenant_entity(
    tenant_id: int,
    entity: EntityType,
    session_factory: sessionmaker = Depends(get_session_factory),
    service_factory: Callable[[Tenant], IngestionService] = Depends(get_ingestion_service_factory),
):
    """Re-sync one entity type for one tenant"""
    tenant = _load_tenant(session_factory, tenant_id)

    try:
        logger.info(f"Starting {entity.value} sync for tenant {tenant_id}")
        result = await service_factory(tenant).ingest(entity.value)
    except Exception as e:
        logger.error(f"Error syncing {entity.value} for tenant {tenant_id}: {e}")
        result = IngestionResult(entity=entity.value, success=False, error=str(e))

    return _entity_response(result)


@router.post("/cycle", response_model=CycleResponse, dependencies=[Depends(verify_sync_key)])
async def run_sync_cycle(
    background_tasks: BackgroundTasks,
    run_in_background: bool = Query(default=False, description="Start the cycle and return immediately"),
    scheduler: SyncScheduler = Depends(get_scheduler),
):
    """
    Run one sync cycle over every registered tenant

    One tenant failing or timing out does not stop the others.
    """
    start_time = datetime.now(timezone.utc)

    if run_in_background:
        background_tasks.add_task(scheduler.run_cycle)
        return CycleResponse(
            success=True,
            message="Sync cycle started in background",
            tenants_synced=0,
            tenants_failed=0,
            outcomes=[],
            started_at=start_time,
            finished_at=None,
        )

    try:
        cycle = await scheduler.run_cycle()
    except Exception as e:
        logger.error(f"Error in sync cycle: {e}")
        return CycleResponse(
            success=False,
            message=f"Sync cycle failed: {str(e)}",
            tenants_synced=0,
            tenants_failed=0,
            outcomes=[],
            started_at=start_time,
            finished_at=datetime.now(timezone.utc),
        )

    return CycleResponse(
        success=cycle.failed == 0,
        message="Sync cycle completed" if cycle.failed == 0 else "Sync cycle completed with errors",
        tenants_synced=cycle.succeeded,
        tenants_failed=cycle.failed,
        outcomes=[_tenant_response(o) for o in cycle.outcomes],
        started_at=cycle.started_at,
        finished_at=cycle.finished_at,
    )
