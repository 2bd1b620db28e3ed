"""
Modelos relacionados con órdenes/pedidos
"""
from sqlalchemy import Column, Integer, String, DateTime, DECIMAL, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shopsync.core.database import Base


class Order(Base):
    """
    Remote order, unique per (tenant_id, remote_id)
    """
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("tenant_id", "remote_id", name="uq_orders_tenant_remote"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    remote_id = Column(String(64), nullable=False)

    # Identificación
    order_number = Column(String(100))
    email = Column(String(255))

    # Relaciones (weak: NULL when the remote customer is not known locally)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), index=True)

    # Estados
    financial_status = Column(String(50))
    fulfillment_status = Column(String(50))

    # Montos
    total_price = Column(DECIMAL(12, 2), nullable=False)
    subtotal_price = Column(DECIMAL(12, 2))
    total_tax = Column(DECIMAL(12, 2))
    total_discounts = Column(DECIMAL(12, 2))
    currency = Column(String(10), nullable=False, default="USD")

    # Fechas
    remote_created_at = Column(DateTime(timezone=True), index=True)
    remote_updated_at = Column(DateTime(timezone=True))

    # Metadata
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    tenant = relationship("Tenant", back_populates="orders")
    customer = relationship("Customer", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    """
    Items/productos de cada orden

    Always the exact remote line-item set of the last reconciliation.
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), index=True)
    remote_product_id = Column(String(64))

    # Datos del producto al momento de venta
    title = Column(String(500), nullable=False)
    sku = Column(String(100))
    variant_title = Column(String(255))

    quantity = Column(Integer, nullable=False)
    price = Column(DECIMAL(12, 2), nullable=False)
    total_discount = Column(DECIMAL(12, 2))

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")
