"""
Product Repository - Data Access Layer for Products
"""
from shopsync.models import Product
from shopsync.repositories.base import TenantScopedRepository


class ProductRepository(TenantScopedRepository):
    """Repository for Product rows"""

    model = Product
