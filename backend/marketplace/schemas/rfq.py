from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Literal
from pydantic import BaseModel, Field

from marketplace.schemas.common import Money


class RFQCreate(BaseModel):
    product_name: str = Field(min_length=1, max_length=255)
    product_category_id: Optional[int] = None
    quantity: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    unit: str = Field(min_length=1, max_length=32)
    delivery_address: str = Field(min_length=1)
    delivery_city: str = Field(min_length=1, max_length=120)
    delivery_province: str = Field(min_length=1, max_length=120)
    delivery_postal_code: Optional[str] = None
    required_by: Optional[date] = None
    additional_notes: Optional[str] = None


class RFQStatusUpdate(BaseModel):
    status: Literal["sourcing"]


class RFQResponse(BaseModel):
    id: int
    reference_number: Optional[str] = None
    buyer_id: int
    product_name: str
    product_category_id: Optional[int] = None
    quantity: Money
    unit: str
    delivery_address: str
    delivery_city: str
    delivery_province: str
    delivery_postal_code: Optional[str] = None
    required_by: Optional[date] = None
    additional_notes: Optional[str] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RFQListRow(RFQResponse):
    """List row. Buyer company and quote count are only filled in for admins."""
    buyer_company: Optional[str] = None
    category_name: Optional[str] = None
    quote_count: int = 0
