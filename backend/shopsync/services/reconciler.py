"""
Reconciler - idempotent upserts of mapped entities into one tenant's partition

Each reconcile_* call is one transaction:
1. Look up the row by natural key (tenant_id, remote_id)
2. Found: overwrite every mapped column -> UPDATED
3. Absent: insert -> CREATED
4. Orders also resolve their weak references (customer, line-item products)
   by lookup and replace their whole item set in the same transaction

Two writers racing on the same natural key are serialized by the unique
constraint: the losing insert raises IntegrityError, the transaction is
rolled back and retried once, and the retry finds the row and updates it.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from shopsync.core.database import SessionLocal
from shopsync.domain import CustomerData, OrderData, ProductData
from shopsync.repositories import CustomerRepository, OrderRepository, ProductRepository
from shopsync.repositories.base import TenantScopedRepository

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ReconcileOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class ReconcileResult:
    outcome: ReconcileOutcome
    internal_id: int


class Reconciler:
    """
    Upsert logic for one tenant

    Args:
        tenant_id: Tenant whose partition every write targets
        session_factory: Session factory (defaults to the app's SessionLocal)
    """

    MAX_ATTEMPTS = 2

    def __init__(self, tenant_id: int, session_factory: Optional[sessionmaker] = None):
        self.tenant_id = tenant_id
        self.session_factory = session_factory or SessionLocal

    # =========================================================================
    # Public API
    # =========================================================================

    def reconcile_customer(self, data: CustomerData) -> ReconcileResult:
        return self._in_transaction(
            lambda session: self._upsert(CustomerRepository(session), data.remote_id, data.to_row()),
            entity='customer',
            remote_id=data.remote_id,
        )

    def reconcile_product(self, data: ProductData) -> ReconcileResult:
        return self._in_transaction(
            lambda session: self._upsert(ProductRepository(session), data.remote_id, data.to_row()),
            entity='product',
            remote_id=data.remote_id,
        )

    def reconcile_order(self, data: OrderData) -> ReconcileResult:
        """
        Upsert an order and replace its item set atomically

        The customer reference is resolved by lookup only; an unknown
        customer or product leaves the reference empty.
        """
        def work(session: Session) -> ReconcileResult:
            customers = CustomerRepository(session)
            products = ProductRepository(session)
            orders = OrderRepository(session)

            values = data.to_row()
            values['customer_id'] = customers.find_id_by_remote_id(self.tenant_id, data.customer_remote_id)

            result = self._upsert(orders, data.remote_id, values)

            items = []
            for item in data.line_items:
                row = item.model_dump()
                row['product_id'] = products.find_id_by_remote_id(self.tenant_id, item.remote_product_id)
                items.append(row)
            orders.replace_items(result.internal_id, items)

            return result

        return self._in_transaction(work, entity='order', remote_id=data.remote_id)

    # =========================================================================
    # Internals
    # =========================================================================

    def _upsert(self, repo: TenantScopedRepository, remote_id: Optional[str], values: dict) -> ReconcileResult:
        if not remote_id:
            raise ValueError("Cannot reconcile a record without a remote id")

        existing = repo.find_by_remote_id(self.tenant_id, remote_id)
        if existing is not None:
            repo.update(existing, values)
            return ReconcileResult(ReconcileOutcome.UPDATED, existing.id)

        row = repo.create(self.tenant_id, remote_id, values)
        return ReconcileResult(ReconcileOutcome.CREATED, row.id)

    def _in_transaction(self, work: Callable[[Session], T], entity: str, remote_id: Optional[str]) -> T:
        """Run `work` in its own transaction, retrying once on a natural-key conflict"""
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            session = self.session_factory()
            try:
                result = work(session)
                session.commit()
                return result

            except IntegrityError:
                session.rollback()
                if attempt == self.MAX_ATTEMPTS:
                    raise
                logger.warning(
                    f"Concurrent insert of {entity} {remote_id} for tenant {self.tenant_id}, retrying as update"
                )

            except Exception:
                session.rollback()
                raise

            finally:
                session.close()
