"""
Tenant Domain Model
"""
from pydantic import BaseModel, ConfigDict, Field


class Tenant(BaseModel):
    """
    Detached snapshot of a tenant row.

    Carries everything needed to build an ingestion run for the tenant,
    so no ORM instance outlives the session that loaded it.
    """

    id: int = Field(..., description="Internal tenant ID")
    shop_domain: str = Field(..., description="Remote shop domain (e.g. acme.myshopify.com)")
    access_token: str = Field(..., description="Remote API access credential", repr=False)
    name: str = Field(..., description="Merchant name")
    email: str = Field(..., description="Merchant contact email")

    model_config = ConfigDict(from_attributes=True)
