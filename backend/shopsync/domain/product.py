"""
Product Domain Model
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ProductData(BaseModel):
    """
    Mapped product fields. Price, compare-at price and inventory come
    from the first variant observed on the remote product.
    """

    remote_id: Optional[str] = Field(None, description="Remote product ID")
    title: str = Field("", description="Product title")
    handle: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    status: Optional[str] = None
    price: Optional[Decimal] = None
    compare_at_price: Optional[Decimal] = None
    inventory_quantity: int = 0
    remote_created_at: Optional[datetime] = None
    remote_updated_at: Optional[datetime] = None

    def to_row(self) -> dict:
        return self.model_dump(exclude={"remote_id"})
