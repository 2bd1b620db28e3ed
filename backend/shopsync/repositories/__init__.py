"""
Repository Layer - Data Access

Repositories wrap a SQLAlchemy Session and keep query details out of the
ingestion services. They flush, the caller commits.
"""
from shopsync.repositories.customer_repository import CustomerRepository
from shopsync.repositories.product_repository import ProductRepository
from shopsync.repositories.order_repository import OrderRepository
from shopsync.repositories.tenant_repository import TenantRepository
from shopsync.repositories.event_repository import EventRepository

__all__ = [
    'CustomerRepository',
    'ProductRepository',
    'OrderRepository',
    'TenantRepository',
    'EventRepository',
]
