"""
Service Layer - ingestion orchestration, reconciliation, tenants, webhooks and scheduling
"""
from shopsync.services.ingestion_service import IngestionReport, IngestionResult, IngestionService
from shopsync.services.reconciler import ReconcileOutcome, ReconcileResult, Reconciler
from shopsync.services.tenant_service import DuplicateTenantError, TenantNotFoundError, TenantService
from shopsync.services.sync_scheduler import SyncScheduler
from shopsync.services.webhook_service import WebhookService

__all__ = [
    'IngestionReport',
    'IngestionResult',
    'IngestionService',
    'ReconcileOutcome',
    'ReconcileResult',
    'Reconciler',
    'DuplicateTenantError',
    'TenantNotFoundError',
    'TenantService',
    'SyncScheduler',
    'WebhookService',
]
