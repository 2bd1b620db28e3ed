"""
Customer Repository - Data Access Layer for Customers
"""
from shopsync.models import Customer
from shopsync.repositories.base import TenantScopedRepository


class CustomerRepository(TenantScopedRepository):
    """Repository for Customer rows"""

    model = Customer
