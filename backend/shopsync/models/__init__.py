"""
Modelos de base de datos
"""
from .tenant import Tenant
from .customer import Customer
from .product import Product
from .order import Order, OrderItem
from .event import Event

__all__ = [
    "Tenant",
    "Customer",
    "Product",
    "Order",
    "OrderItem",
    "Event",
]
