"""
Domain Layer - Business Entities

Pydantic models for the mapped field set of each entity. The mapper
produces them from remote payloads; the reconciler writes them.
"""
from shopsync.domain.tenant import Tenant
from shopsync.domain.customer import CustomerData
from shopsync.domain.product import ProductData
from shopsync.domain.order import OrderData, OrderItemData

__all__ = ['Tenant', 'CustomerData', 'ProductData', 'OrderData', 'OrderItemData']
