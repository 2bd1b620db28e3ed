"""
Webhook Service - Shopify event intake

Authenticates a webhook delivery (HMAC-SHA256 over the raw body, keyed
with the tenant's access token, base64) and routes its topic to a
targeted ingestion for that tenant.

By default a topic re-syncs the whole collection of its entity type.
With WEBHOOK_RESYNC_SCOPE="record" only the entity named in the payload
is fetched and reconciled.
"""
import hmac
import json
import base64
import hashlib
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import sessionmaker

from shopsync.core.config import settings
from shopsync.core.database import SessionLocal
from shopsync.domain import Tenant
from shopsync.services.ingestion_service import IngestionResult, IngestionService
from shopsync.services.tenant_service import TenantNotFoundError, TenantService

logger = logging.getLogger(__name__)

TOPIC_ENTITIES = {
    'orders/create': 'orders',
    'orders/updated': 'orders',
    'orders/paid': 'orders',
    'customers/create': 'customers',
    'customers/update': 'customers',
    'products/create': 'products',
    'products/update': 'products',
}

RESYNC_SCOPES = ('collection', 'record')


class WebhookStatus(str, Enum):
    PROCESSED = "processed"
    IGNORED = "ignored"
    UNAUTHORIZED = "unauthorized"
    TENANT_NOT_FOUND = "tenant_not_found"


@dataclass
class WebhookResult:
    status: WebhookStatus
    topic: str
    entity: Optional[str] = None
    ingestion: Optional[IngestionResult] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'topic': self.topic,
            'entity': self.entity,
            'ingestion': self.ingestion.to_dict() if self.ingestion else None,
        }


def compute_webhook_signature(body: bytes, secret: str) -> str:
    """Base64 HMAC-SHA256 of the raw body"""
    digest = hmac.new(secret.encode('utf-8'), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode('ascii')


def verify_webhook_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    """Compare the supplied signature with the recomputed one in constant time"""
    if not signature or not secret:
        return False
    expected = compute_webhook_signature(body, secret)
    return hmac.compare_digest(expected.encode('ascii'), signature.encode('utf-8'))


def _payload_id(body: bytes) -> Optional[str]:
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict) or payload.get('id') in (None, '') or isinstance(payload.get('id'), bool):
        return None
    return str(payload['id'])


class WebhookService:
    """
    Event intake for one delivery at a time

    Args:
        session_factory: Session factory for tenant lookup and ingestion
        service_factory: Builds an IngestionService for a tenant
        resync_scope: "collection" or "record" (defaults to WEBHOOK_RESYNC_SCOPE)
    """

    def __init__(
        self,
        session_factory: Optional[sessionmaker] = None,
        service_factory: Optional[Callable[[Tenant], IngestionService]] = None,
        resync_scope: Optional[str] = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.service_factory = service_factory or (
            lambda tenant: IngestionService.for_tenant(tenant, session_factory=self.session_factory)
        )
        self.resync_scope = resync_scope or settings.WEBHOOK_RESYNC_SCOPE
        if self.resync_scope not in RESYNC_SCOPES:
            raise ValueError(f"resync_scope must be one of {RESYNC_SCOPES}, got {self.resync_scope!r}")

    async def handle(self, body: bytes, signature: str, shop_domain: str, topic: str) -> WebhookResult:
        """
        Authenticate a delivery and run the ingestion its topic calls for

        Returns:
            WebhookResult; a failed ingestion is reported inside it, never raised
        """
        try:
            tenant = TenantService(self.session_factory).get_by_shop_domain(shop_domain)
        except TenantNotFoundError:
            logger.warning(f"Tenant not found for shop: {shop_domain}")
            return WebhookResult(WebhookStatus.TENANT_NOT_FOUND, topic)

        if not verify_webhook_signature(body, signature, tenant.access_token):
            logger.warning(f"Invalid webhook signature from {shop_domain} (topic {topic})")
            return WebhookResult(WebhookStatus.UNAUTHORIZED, topic)

        entity = TOPIC_ENTITIES.get(topic)
        if entity is None:
            logger.info(f"Unhandled webhook topic: {topic}")
            return WebhookResult(WebhookStatus.IGNORED, topic)

        service = self.service_factory(tenant)
        remote_id = _payload_id(body) if self.resync_scope == 'record' else None

        if remote_id:
            logger.info(f"Webhook {topic} from {shop_domain}: reconciling {entity} {remote_id}")
            ingestion = await service.reconcile_one(entity, remote_id)
        else:
            if self.resync_scope == 'record':
                logger.warning(f"Webhook {topic} from {shop_domain} has no id, re-syncing all {entity}")
            logger.info(f"Webhook {topic} from {shop_domain}: re-syncing {entity}")
            ingestion = await service.ingest(entity)

        return WebhookResult(WebhookStatus.PROCESSED, topic, entity=entity, ingestion=ingestion)
