"""
Tenant model - one merchant account
"""
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from shopsync.core.database import Base


class Tenant(Base):
    """
    Merchant account whose catalog is ingested.

    access_token authenticates remote calls and keys webhook signatures.
    Deleting a tenant cascades to every row it owns.
    """
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)

    shop_domain = Column(String(255), nullable=False, unique=True, index=True)
    access_token = Column(Text, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customers = relationship("Customer", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
    products = relationship("Product", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
    orders = relationship("Order", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
    events = relationship("Event", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
