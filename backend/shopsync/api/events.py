"""
Events API - append tenant events

Endpoints:
- POST /api/v1/tenants/{tenant_id}/events - Record an event, optionally tied to a customer and/or order
"""
from typing import Any, Callable, Dict, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import sessionmaker

from shopsync.api.dependencies import get_ingestion_service_factory, get_session_factory, verify_sync_key
from shopsync.domain import Tenant
from shopsync.services.ingestion_service import IngestionService
from shopsync.services.tenant_service import TenantService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/tenants", tags=["Events"], dependencies=[Depends(verify_sync_key)])


class EventCreate(BaseModel):
    event_type: str
    customer_id: Optional[int] = None
    order_id: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None


@router.post("/{tenant_id}/events", status_code=201)
async def record_event(
    tenant_id: int,
    payload: EventCreate,
    session_factory: sessionmaker = Depends(get_session_factory),
    service_factory: Callable[[Tenant], IngestionService] = Depends(get_ingestion_service_factory),
):
    """
    Record an event for a tenant

    customer_id and order_id are internal IDs and must belong to the tenant.
    """
    if not payload.event_type.strip():
        raise HTTPException(status_code=400, detail="event_type is required")

    try:
        tenant = TenantService(session_factory).get(tenant_id)
        event_id = service_factory(tenant).record_event(
            payload.event_type.strip(),
            customer_id=payload.customer_id,
            order_id=payload.order_id,
            metadata=payload.metadata,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info(f"Recorded {payload.event_type} event {event_id} for tenant {tenant_id}")
    return {"status": "success", "event_id": event_id}
