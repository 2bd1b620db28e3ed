"""
Tenant Service - tenant lookup, registration and credential rotation

Returns detached Tenant snapshots so callers never hold ORM rows past
their session.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from shopsync.core.database import SessionLocal
from shopsync.domain import Tenant
from shopsync.repositories import (
    CustomerRepository,
    EventRepository,
    OrderRepository,
    ProductRepository,
    TenantRepository,
)

logger = logging.getLogger(__name__)


class TenantNotFoundError(LookupError):
    """No tenant matches the given id or shop domain"""


class DuplicateTenantError(ValueError):
    """A tenant with this shop domain is already registered"""


class TenantService:

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def get(self, tenant_id: int) -> Tenant:
        with self.session_factory() as session:
            tenant = TenantRepository(session).find_by_id(tenant_id)
            if tenant is None:
                raise TenantNotFoundError(f"Tenant {tenant_id} not found")
            return Tenant.model_validate(tenant)

    def get_by_shop_domain(self, shop_domain: str) -> Tenant:
        with self.session_factory() as session:
            tenant = TenantRepository(session).find_by_shop_domain(shop_domain)
            if tenant is None:
                raise TenantNotFoundError(f"Tenant not found for shop {shop_domain}")
            return Tenant.model_validate(tenant)

    def list_all(self) -> List[Tenant]:
        with self.session_factory() as session:
            return [Tenant.model_validate(t) for t in TenantRepository(session).list_all()]

    def register(self, shop_domain: str, access_token: str, name: str, email: str) -> Tenant:
        """
        Register a new tenant

        Raises:
            DuplicateTenantError: shop_domain already registered
        """
        session = self.session_factory()
        try:
            tenant = TenantRepository(session).create(shop_domain, access_token, name, email)
            session.commit()
            logger.info(f"Registered tenant {tenant.id} for {shop_domain}")
            return Tenant.model_validate(tenant)
        except IntegrityError as e:
            session.rollback()
            raise DuplicateTenantError(f"Tenant with shop domain {shop_domain} already exists") from e
        finally:
            session.close()

    def rotate_access_token(self, tenant_id: int, access_token: str) -> Tenant:
        session = self.session_factory()
        try:
            repo = TenantRepository(session)
            tenant = repo.find_by_id(tenant_id)
            if tenant is None:
                raise TenantNotFoundError(f"Tenant {tenant_id} not found")
            repo.update_access_token(tenant, access_token)
            session.commit()
            logger.info(f"Rotated access token for tenant {tenant_id}")
            return Tenant.model_validate(tenant)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_status(self, tenant_id: int) -> Dict[str, int]:
        """
        Row counts per entity type for one tenant

        Raises:
            TenantNotFoundError: unknown tenant
        """
        with self.session_factory() as session:
            if TenantRepository(session).find_by_id(tenant_id) is None:
                raise TenantNotFoundError(f"Tenant {tenant_id} not found")

            orders = OrderRepository(session)
            return {
                'customers': CustomerRepository(session).count(tenant_id),
                'products': ProductRepository(session).count(tenant_id),
                'orders': orders.count(tenant_id),
                'order_items': orders.count_items(tenant_id),
                'events': EventRepository(session).count(tenant_id),
            }
