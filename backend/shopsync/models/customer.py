"""
Customer model
"""
from sqlalchemy import Column, Integer, String, DateTime, DECIMAL, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shopsync.core.database import Base


class Customer(Base):
    """
    Remote customer, unique per (tenant_id, remote_id)
    """
    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("tenant_id", "remote_id", name="uq_customers_tenant_remote"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    remote_id = Column(String(64), nullable=False)

    # Contacto
    email = Column(String(255), index=True)
    first_name = Column(String(255))
    last_name = Column(String(255))
    phone = Column(String(64))

    # Totales
    total_spent = Column(DECIMAL(12, 2), nullable=False, default=0)
    orders_count = Column(Integer, nullable=False, default=0)

    # Remote timestamps (NULL when absent upstream)
    remote_created_at = Column(DateTime(timezone=True))
    remote_updated_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    tenant = relationship("Tenant", back_populates="customers")
    orders = relationship("Order", back_populates="customer", passive_deletes=True)
