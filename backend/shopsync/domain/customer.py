"""
Customer Domain Model
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CustomerData(BaseModel):
    """
    Mapped customer fields, ready for reconciliation

    Fields:
        remote_id: Remote customer ID (None when the payload has none)
        email, first_name, last_name, phone: Contact fields
        total_spent: Lifetime spend, never negative
        orders_count: Remote order count, never negative
        remote_created_at / remote_updated_at: Unset when absent upstream
    """

    remote_id: Optional[str] = Field(None, description="Remote customer ID")
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    total_spent: Decimal = Field(Decimal("0"), ge=0)
    orders_count: int = Field(0, ge=0)
    remote_created_at: Optional[datetime] = None
    remote_updated_at: Optional[datetime] = None

    def to_row(self) -> dict:
        """Column values to write (the natural key is handled by the repository)"""
        return self.model_dump(exclude={"remote_id"})
