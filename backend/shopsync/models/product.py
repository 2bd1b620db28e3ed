"""
Product model
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, DECIMAL, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shopsync.core.database import Base


class Product(Base):
    """
    Remote product, unique per (tenant_id, remote_id).
    Pricing and inventory come from the first variant.
    """
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("tenant_id", "remote_id", name="uq_products_tenant_remote"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    remote_id = Column(String(64), nullable=False)

    title = Column(Text, nullable=False)
    handle = Column(String(255))
    vendor = Column(String(255))
    product_type = Column(String(255))
    status = Column(String(50))

    price = Column(DECIMAL(12, 2))
    compare_at_price = Column(DECIMAL(12, 2))
    inventory_quantity = Column(Integer, nullable=False, default=0)

    remote_created_at = Column(DateTime(timezone=True))
    remote_updated_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    tenant = relationship("Tenant", back_populates="products")
    order_items = relationship("OrderItem", back_populates="product", passive_deletes=True)
