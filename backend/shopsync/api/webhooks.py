"""
Webhooks API - Shopify event intake

Endpoints:
- POST /api/v1/webhooks/shopify - Signed Shopify webhook delivery

Shopify expects a quick 2xx; unrecognized topics are acknowledged and
ignored so the delivery is not retried.
"""
from typing import Callable
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.orm import sessionmaker

from shopsync.api.dependencies import get_ingestion_service_factory, get_session_factory
from shopsync.domain import Tenant
from shopsync.services.ingestion_service import IngestionService
from shopsync.services.webhook_service import WebhookService, WebhookStatus

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/webhooks", tags=["Webhooks"])


def get_webhook_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    service_factory: Callable[[Tenant], IngestionService] = Depends(get_ingestion_service_factory),
) -> WebhookService:
    return WebhookService(session_factory=session_factory, service_factory=service_factory)


@router.post("/shopify")
async def shopify_webhook(
    request: Request,
    x_shopify_hmac_sha256: str = Header(None, alias="X-Shopify-Hmac-Sha256"),
    x_shopify_shop_domain: str = Header(None, alias="X-Shopify-Shop-Domain"),
    x_shopify_topic: str = Header(None, alias="X-Shopify-Topic"),
    webhook_service: WebhookService = Depends(get_webhook_service),
):
    """
    Receive a Shopify webhook

    - 400: a required Shopify header is missing
    - 404: no tenant for the shop domain
    - 401: signature does not match the body
    """
    if not x_shopify_hmac_sha256 or not x_shopify_shop_domain or not x_shopify_topic:
        logger.warning("Webhook rejected: missing Shopify headers")
        raise HTTPException(status_code=400, detail="Missing required Shopify webhook headers")

    body = await request.body()
    result = await webhook_service.handle(body, x_shopify_hmac_sha256, x_shopify_shop_domain, x_shopify_topic)

    if result.status == WebhookStatus.TENANT_NOT_FOUND:
        raise HTTPException(status_code=404, detail="Tenant not found")
    if result.status == WebhookStatus.UNAUTHORIZED:
        raise HTTPException(status_code=401, detail="Invalid signature")

    return {"received": True, **result.to_dict()}
