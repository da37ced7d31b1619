from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from marketplace.schemas.common import Money


class QuoteSubmit(BaseModel):
    price_per_unit: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    lead_time_days: int = Field(ge=0)
    valid_until: date
    notes: Optional[str] = None


class SupplierQuoteResponse(BaseModel):
    id: int
    rfq_id: int
    supplier_id: int
    price_per_unit: Money
    total_price: Money
    lead_time_days: int
    valid_until: date
    notes: Optional[str] = None
    is_selected: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MyQuoteRow(SupplierQuoteResponse):
    """Supplier's own quote with the RFQ it answers and its display state."""
    state: str  # selected | pending | expired
    rfq_reference: Optional[str] = None
    product_name: str
    quantity: Money
    unit: str
    rfq_status: str


class AdminQuoteRow(SupplierQuoteResponse):
    supplier_company: Optional[str] = None
    supplier_city: Optional[str] = None
