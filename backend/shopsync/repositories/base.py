"""
Tenant-scoped repository base

Every lookup and write is filtered by tenant_id. Repositories flush but
never commit: the caller owns the transaction.
"""
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session


class TenantScopedRepository:
    """
    Natural-key access for entities unique per (tenant_id, remote_id)

    Subclasses set `model` to the ORM class.
    """

    model = None

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, tenant_id: int, entity_id: int):
        """Find a row by internal ID inside the tenant's partition"""
        return self.session.execute(
            select(self.model).where(
                self.model.tenant_id == tenant_id,
                self.model.id == entity_id,
            )
        ).scalar_one_or_none()

    def find_by_remote_id(self, tenant_id: int, remote_id: str):
        """
        Find a row by natural key

        Args:
            tenant_id: Owning tenant
            remote_id: ID on the remote source

        Returns:
            The ORM row or None if not reconciled yet
        """
        return self.session.execute(
            select(self.model).where(
                self.model.tenant_id == tenant_id,
                self.model.remote_id == remote_id,
            )
        ).scalar_one_or_none()

    def find_id_by_remote_id(self, tenant_id: int, remote_id: Optional[str]) -> Optional[int]:
        """Resolve a remote reference to an internal ID (None when unknown)"""
        if not remote_id:
            return None
        return self.session.execute(
            select(self.model.id).where(
                self.model.tenant_id == tenant_id,
                self.model.remote_id == remote_id,
            )
        ).scalar_one_or_none()

    def create(self, tenant_id: int, remote_id: str, values: Dict[str, Any]):
        """
        Insert a new row and flush it

        Raises:
            sqlalchemy.exc.IntegrityError: the natural key already exists
        """
        row = self.model(tenant_id=tenant_id, remote_id=remote_id, **values)
        self.session.add(row)
        self.session.flush()
        return row

    def update(self, row, values: Dict[str, Any]):
        """Overwrite every mapped column in place (full replace, not merge)"""
        for column, value in values.items():
            setattr(row, column, value)
        self.session.flush()
        return row

    def count(self, tenant_id: int) -> int:
        return self.session.execute(
            select(func.count()).select_from(self.model).where(self.model.tenant_id == tenant_id)
        ).scalar_one()
