"""
Tenant Repository - Data Access Layer for Tenants
"""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from shopsync.models import Tenant


class TenantRepository:
    """
    Repository for Tenant rows

    Handles:
    - Lookup by ID and by shop domain
    - Enumeration for scheduled cycles
    - Registration and credential rotation
    """

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, tenant_id: int) -> Optional[Tenant]:
        return self.session.get(Tenant, tenant_id)

    def find_by_shop_domain(self, shop_domain: str) -> Optional[Tenant]:
        return self.session.execute(
            select(Tenant).where(Tenant.shop_domain == shop_domain)
        ).scalar_one_or_none()

    def list_all(self) -> List[Tenant]:
        return list(self.session.execute(select(Tenant).order_by(Tenant.id)).scalars())

    def create(self, shop_domain: str, access_token: str, name: str, email: str) -> Tenant:
        """
        Register a tenant

        Raises:
            sqlalchemy.exc.IntegrityError: shop_domain already registered
        """
        tenant = Tenant(shop_domain=shop_domain, access_token=access_token, name=name, email=email)
        self.session.add(tenant)
        self.session.flush()
        return tenant

    def update_access_token(self, tenant: Tenant, access_token: str) -> Tenant:
        """Rotate the tenant's remote credential"""
        tenant.access_token = access_token
        self.session.flush()
        return tenant
