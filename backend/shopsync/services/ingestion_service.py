"""
Ingestion Service - one tenant's catalog ingestion run

Fetches remote collections, maps every record and reconciles it into the
tenant's partition. Stateless per call: each instance is built from a
tenant id and its credentials.

Ordering: customers and products run concurrently and both finish before
orders start, so order -> customer and line item -> product references
resolve against this run's data.

Author: TM3
Date: 2025-10-04
Updated: 2025-11-04 (multi-tenant reconciler)
"""
import time
import asyncio
import logging
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.orm import sessionmaker

from shopsync.connectors.shopify_connector import ShopifyConnector
from shopsync.connectors.shopify_mapper import map_customer, map_order, map_product
from shopsync.core.config import settings
from shopsync.core.database import SessionLocal
from shopsync.domain import Tenant
from shopsync.repositories import CustomerRepository, EventRepository, OrderRepository
from shopsync.services.reconciler import ReconcileOutcome, Reconciler

logger = logging.getLogger(__name__)

# ============================================================================
# Result Models
# ============================================================================

@dataclass
class IngestionResult:
    """Counters for one entity type; success=False carries the failure reason"""
    entity: str
    success: bool = True
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def processed(self) -> int:
        return self.created + self.updated

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class IngestionReport:
    """Outcome of ingest_all for one tenant"""
    tenant_id: int
    customers: IngestionResult
    products: IngestionResult
    orders: IngestionResult
    duration_seconds: float = 0.0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.customers.success and self.products.success and self.orders.success

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tenant_id': self.tenant_id,
            'success': self.success,
            'customers': self.customers.to_dict(),
            'products': self.products.to_dict(),
            'orders': self.orders.to_dict(),
            'duration_seconds': self.duration_seconds,
            'errors': list(self.errors),
        }


# ============================================================================
# Ingestion Service
# ============================================================================

class IngestionService:
    """
    Orchestrates ingestion for one tenant

    Handles:
    - Full collection ingestion per entity type (targeted re-sync)
    - Full run across entity types in dependency order
    - Single-record reconciliation (webhook "record" scope)
    - Event recording
    """

    def __init__(
        self,
        tenant_id: int,
        shop_domain: str,
        access_token: str,
        connector: Optional[ShopifyConnector] = None,
        session_factory: Optional[sessionmaker] = None,
        page_size: Optional[int] = None,
    ):
        self.tenant_id = tenant_id
        self.shop_domain = shop_domain
        self.session_factory = session_factory or SessionLocal
        self.connector = connector or ShopifyConnector(shop_domain, access_token)
        self.reconciler = Reconciler(tenant_id, self.session_factory)
        self.page_size = min(page_size or settings.SHOPIFY_PAGE_SIZE, 250)
        self._store_lock = asyncio.Lock()

        # entity type -> (fetch, map, reconcile)
        self._pipelines: Dict[str, tuple] = {
            'customers': (self._fetch_customers, map_customer, self.reconciler.reconcile_customer),
            'products': (self._fetch_products, map_product, self.reconciler.reconcile_product),
            'orders': (self._fetch_orders, map_order, self.reconciler.reconcile_order),
        }

    @classmethod
    def for_tenant(cls, tenant: Tenant, **kwargs) -> "IngestionService":
        return cls(tenant.id, tenant.shop_domain, tenant.access_token, **kwargs)

    # =========================================================================
    # Remote fetches
    # =========================================================================

    async def _fetch_customers(self) -> List[Dict]:
        return await self.connector.get_customers(limit=self.page_size)

    async def _fetch_products(self) -> List[Dict]:
        return await self.connector.get_products(limit=self.page_size)

    async def _fetch_orders(self) -> List[Dict]:
        return await self.connector.get_orders(limit=self.page_size)

    # =========================================================================
    # Ingestion
    # =========================================================================

    async def ingest_customers(self) -> IngestionResult:
        """Fetch and reconcile every remote customer"""
        return await self._ingest('customers')

    async def ingest_products(self) -> IngestionResult:
        """Fetch and reconcile every remote product"""
        return await self._ingest('products')

    async def ingest_orders(self) -> IngestionResult:
        """
        Fetch and reconcile every remote order

        Customers are looked up, never fetched; each order's item set is
        replaced with the remote line items.
        """
        return await self._ingest('orders')

    async def ingest(self, entity: str) -> IngestionResult:
        """Targeted ingestion by entity type name"""
        if entity not in self._pipelines:
            raise ValueError(f"Unknown entity type: {entity}")
        return await self._ingest(entity)

    async def ingest_all(self) -> IngestionReport:
        """
        Ingest customers and products concurrently, then orders

        Orders are attempted even when customers or products failed; their
        references then resolve against whatever is already stored.
        """
        start_time = time.time()
        logger.info(f"Starting full ingestion for tenant {self.tenant_id} ({self.shop_domain})")

        customers, products = await asyncio.gather(self.ingest_customers(), self.ingest_products())
        orders = await self.ingest_orders()

        report = IngestionReport(
            tenant_id=self.tenant_id,
            customers=customers,
            products=products,
            orders=orders,
            duration_seconds=round(time.time() - start_time, 2),
            errors=[f"{r.entity}: {r.error}" for r in (customers, products, orders) if not r.success],
        )

        if report.success:
            logger.info(f"Full ingestion complete for tenant {self.tenant_id}: {report.to_dict()}")
        else:
            logger.error(f"Full ingestion for tenant {self.tenant_id} finished with errors: {report.errors}")

        return report

    async def _ingest(self, entity: str) -> IngestionResult:
        fetch, mapper, reconcile = self._pipelines[entity]
        result = IngestionResult(entity=entity)
        start_time = time.time()

        try:
            records = await fetch()
        except Exception as e:
            logger.error(f"Fetching {entity} failed for tenant {self.tenant_id}: {e}")
            result.success = False
            result.error = str(e)
            result.duration_seconds = round(time.time() - start_time, 2)
            return result

        try:
            for raw in records:
                await self._reconcile_record(entity, raw, mapper, reconcile, result)
        except Exception as e:
            # Store-level failure (connection lost, schema missing...): stop this type,
            # rows committed so far stay committed
            logger.error(f"Reconciling {entity} failed for tenant {self.tenant_id}: {e}")
            result.success = False
            result.error = str(e)

        result.duration_seconds = round(time.time() - start_time, 2)
        logger.info(
            f"{entity} ingestion for tenant {self.tenant_id}: "
            f"{result.created} created, {result.updated} updated, "
            f"{result.skipped} skipped, {result.failed} failed"
        )
        return result

    async def _reconcile_record(
        self,
        entity: str,
        raw: Any,
        mapper: Callable,
        reconcile: Callable,
        result: IngestionResult,
    ) -> None:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object {entity} record for tenant {self.tenant_id}")
            result.skipped += 1
            return

        data = mapper(raw)
        if not data.remote_id:
            logger.warning(f"Skipping {entity} record without id for tenant {self.tenant_id}")
            result.skipped += 1
            return

        try:
            # Blocking write on a worker thread, one record at a time per service
            async with self._store_lock:
                outcome = await asyncio.to_thread(reconcile, data)
        except (DataError, IntegrityError) as e:
            logger.warning(f"Failed to reconcile {entity} {data.remote_id} for tenant {self.tenant_id}: {e}")
            result.failed += 1
            return

        if outcome.outcome == ReconcileOutcome.CREATED:
            result.created += 1
        else:
            result.updated += 1

    async def reconcile_one(self, entity: str, remote_id: str) -> IngestionResult:
        """
        Fetch one remote record and reconcile it

        A record that no longer exists upstream reconciles nothing and is
        reported as skipped.
        """
        if entity not in self._pipelines:
            raise ValueError(f"Unknown entity type: {entity}")

        _, mapper, reconcile = self._pipelines[entity]
        result = IngestionResult(entity=entity)
        start_time = time.time()

        try:
            raw = await self.connector.fetch_one(entity, remote_id)
            if raw is None:
                logger.info(f"{entity} {remote_id} absent upstream for tenant {self.tenant_id}")
                result.skipped += 1
            else:
                await self._reconcile_record(entity, raw, mapper, reconcile, result)
        except Exception as e:
            logger.error(f"Reconciling {entity} {remote_id} failed for tenant {self.tenant_id}: {e}")
            result.success = False
            result.error = str(e)

        result.duration_seconds = round(time.time() - start_time, 2)
        return result

    # =========================================================================
    # Events
    # =========================================================================

    def record_event(
        self,
        event_type: str,
        customer_id: Optional[int] = None,
        order_id: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Append an event for this tenant

        Returns:
            The new event ID

        Raises:
            LookupError: customer_id or order_id is not a row of this tenant
        """
        session = self.session_factory()
        try:
            if customer_id is not None and CustomerRepository(session).find_by_id(self.tenant_id, customer_id) is None:
                raise LookupError(f"Customer {customer_id} not found for tenant {self.tenant_id}")
            if order_id is not None and OrderRepository(session).find_by_id(self.tenant_id, order_id) is None:
                raise LookupError(f"Order {order_id} not found for tenant {self.tenant_id}")

            event = EventRepository(session).create(
                self.tenant_id,
                event_type,
                customer_id=customer_id,
                order_id=order_id,
                metadata=metadata,
            )
            session.commit()
            return event.id
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
