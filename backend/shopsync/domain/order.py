"""
Order Domain Models

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class OrderItemData(BaseModel):
    """
    Order line item as mapped from the remote payload

    Fields:
        remote_product_id: Remote product reference (resolved to product_id
            at reconciliation time; None when the line has no product)
        title: Line title at order time
        quantity: Units ordered (at least 1)
        price: Unit price
        total_discount: Discount applied to the line (optional)
        sku: Variant SKU (optional)
        variant_title: Variant label (optional)
    """

    remote_product_id: Optional[str] = None
    title: str = ""
    quantity: int = Field(1, ge=1)
    price: Decimal = Decimal("0")
    total_discount: Optional[Decimal] = None
    sku: Optional[str] = None
    variant_title: Optional[str] = None


class OrderData(BaseModel):
    """
    Mapped order fields plus the weak customer reference and line items

    customer_remote_id is resolved to an internal customer id by lookup only;
    it is never fetched. total_price is required (zero when unparsable),
    the other totals are optional.
    """

    remote_id: Optional[str] = Field(None, description="Remote order ID")
    order_number: Optional[str] = None
    email: Optional[str] = None
    financial_status: Optional[str] = None
    fulfillment_status: Optional[str] = None
    total_price: Decimal = Decimal("0")
    subtotal_price: Optional[Decimal] = None
    total_tax: Optional[Decimal] = None
    total_discounts: Optional[Decimal] = None
    currency: str = "USD"
    customer_remote_id: Optional[str] = None
    remote_created_at: Optional[datetime] = None
    remote_updated_at: Optional[datetime] = None
    line_items: List[OrderItemData] = Field(default_factory=list)

    def to_row(self) -> dict:
        return self.model_dump(exclude={"remote_id", "customer_remote_id", "line_items"})
