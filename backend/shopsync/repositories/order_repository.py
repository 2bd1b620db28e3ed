"""
Order Repository - Data Access Layer for Orders

Handles order rows and their item sets. Item-set replacement is a
delete + insert that the caller commits together with the order write.

Author: TM3
Date: 2025-10-17
"""
from typing import Any, Dict, List

from sqlalchemy import delete, func, select

from shopsync.models import Order, OrderItem
from shopsync.repositories.base import TenantScopedRepository


class OrderRepository(TenantScopedRepository):
    """
    Repository for Order data access

    Adds item-set operations on top of the natural-key access.
    """

    model = Order

    def list_items(self, order_id: int) -> List[OrderItem]:
        """Items of one order, in insertion order"""
        return list(self.session.execute(
            select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
        ).scalars())

    def delete_items(self, order_id: int) -> int:
        """
        Delete every stored item of an order

        Returns:
            Number of rows deleted
        """
        result = self.session.execute(
            delete(OrderItem)
            .where(OrderItem.order_id == order_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def add_items(self, order_id: int, items: List[Dict[str, Any]]) -> List[OrderItem]:
        """Insert item rows for an order and flush them"""
        rows = [OrderItem(order_id=order_id, **item) for item in items]
        self.session.add_all(rows)
        self.session.flush()
        return rows

    def replace_items(self, order_id: int, items: List[Dict[str, Any]]) -> List[OrderItem]:
        """
        Replace the item set of an order with exactly `items`

        Previously stored items are removed first, so lines dropped on the
        remote side never linger.
        """
        self.delete_items(order_id)
        return self.add_items(order_id, items)

    def count_items(self, tenant_id: int) -> int:
        """Total order items stored for a tenant"""
        return self.session.execute(
            select(func.count(OrderItem.id))
            .join(Order, OrderItem.order_id == Order.id)
            .where(Order.tenant_id == tenant_id)
        ).scalar_one()
