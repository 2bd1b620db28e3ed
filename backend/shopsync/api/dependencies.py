"""
Shared FastAPI dependencies

Routers get their session factory, ingestion services and scheduler from
here so tests can swap them through app.dependency_overrides.
"""
import logging
from typing import Callable

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import sessionmaker

from shopsync.core.config import settings
from shopsync.core.database import SessionLocal
from shopsync.domain import Tenant
from shopsync.services.ingestion_service import IngestionService
from shopsync.services.sync_scheduler import SyncScheduler

logger = logging.getLogger(__name__)


def get_session_factory() -> sessionmaker:
    return SessionLocal


def get_ingestion_service_factory(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> Callable[[Tenant], IngestionService]:
    """Builds a fresh IngestionService per tenant"""
    def build(tenant: Tenant) -> IngestionService:
        return IngestionService.for_tenant(tenant, session_factory=session_factory)

    return build


def get_scheduler(
    request: Request,
    session_factory: sessionmaker = Depends(get_session_factory),
    service_factory: Callable[[Tenant], IngestionService] = Depends(get_ingestion_service_factory),
) -> SyncScheduler:
    """The running scheduler when the app started one, otherwise a one-off instance"""
    scheduler = getattr(request.app.state, 'scheduler', None)
    if scheduler is None:
        scheduler = SyncScheduler(session_factory=session_factory, service_factory=service_factory)
    return scheduler


async def verify_sync_key(x_sync_key: str = Header(None, alias="X-Sync-Key")):
    """
    Verify the sync API key from X-Sync-Key header.

    If SYNC_API_KEY is not configured, allows all requests.
    If configured, requires matching key.
    """
    if not settings.SYNC_API_KEY:
        logger.warning("SYNC_API_KEY not configured - sync endpoints are unprotected!")
        return

    if not x_sync_key:
        logger.warning("Sync request without X-Sync-Key header")
        raise HTTPException(
            status_code=401,
            detail="Missing X-Sync-Key header. Authentication required."
        )

    if x_sync_key != settings.SYNC_API_KEY:
        logger.warning("Invalid sync key attempt")
        raise HTTPException(
            status_code=401,
            detail="Invalid API key"
        )
