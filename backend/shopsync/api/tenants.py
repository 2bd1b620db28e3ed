"""
Tenants API - Tenant registration and credential management

Endpoints:
- POST /api/v1/tenants                               - Register a shop (requires API key)
- PUT  /api/v1/tenants/{tenant_id}/access-token      - Rotate the shop's access token (requires API key)
- GET  /api/v1/tenants/{tenant_id}/connection        - Test the shop's API credentials (requires API key)

Access tokens are write-only: no response ever includes one.
"""
from typing import Callable, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import sessionmaker

from shopsync.api.dependencies import get_ingestion_service_factory, get_session_factory, verify_sync_key
from shopsync.domain import Tenant
from shopsync.services.ingestion_service import IngestionService
from shopsync.services.tenant_service import DuplicateTenantError, TenantNotFoundError, TenantService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/tenants", tags=["Tenants"], dependencies=[Depends(verify_sync_key)])


# Request / response models
class TenantCreate(BaseModel):
    shop_domain: str = Field(..., min_length=1, description="e.g. acme.myshopify.com")
    access_token: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)


class AccessTokenUpdate(BaseModel):
    access_token: str = Field(..., min_length=1)


class TenantResponse(BaseModel):
    id: int
    shop_domain: str
    name: str
    email: str


class ConnectionResponse(BaseModel):
    success: bool
    shop_name: Optional[str] = None
    domain: Optional[str] = None
    currency: Optional[str] = None
    error: Optional[str] = None


def _to_response(tenant: Tenant) -> TenantResponse:
    return TenantResponse(id=tenant.id, shop_domain=tenant.shop_domain, name=tenant.name, email=tenant.email)


@router.post("", response_model=TenantResponse, status_code=201)
async def register_tenant(
    payload: TenantCreate,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """Register a new shop as a tenant (409 when the shop domain is taken)"""
    try:
        tenant = TenantService(session_factory).register(
            payload.shop_domain.strip().lower(),
            payload.access_token,
            payload.name,
            payload.email,
        )
    except DuplicateTenantError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return _to_response(tenant)


@router.put("/{tenant_id}/access-token", response_model=TenantResponse)
async def rotate_access_token(
    tenant_id: int,
    payload: AccessTokenUpdate,
    session_factory: sessionmaker = Depends(get_session_factory),
):
    try:
        tenant = TenantService(session_factory).rotate_access_token(tenant_id, payload.access_token)
    except TenantNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return _to_response(tenant)


@router.get("/{tenant_id}/connection", response_model=ConnectionResponse)
async def check_tenant_connection(
    tenant_id: int,
    session_factory: sessionmaker = Depends(get_session_factory),
    service_factory: Callable[[Tenant], IngestionService] = Depends(get_ingestion_service_factory),
):
    """Call the shop endpoint with the stored credentials"""
    try:
        tenant = TenantService(session_factory).get(tenant_id)
    except TenantNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    result = await service_factory(tenant).connector.test_connection()
    if not result['success']:
        logger.warning(f"Connection test failed for tenant {tenant_id}: {result['error']}")
        return ConnectionResponse(success=False, error=result['error'])

    return ConnectionResponse(
        success=True,
        shop_name=result.get('shop_name'),
        domain=result.get('domain'),
        currency=result.get('currency'),
    )
