from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from marketplace import config
from marketplace.schemas.common import Money


class OfferPricingInput(BaseModel):
    supplier_quote_id: int
    margin_percent: Decimal = Field(default=config.DEFAULT_MARGIN_PERCENT, ge=0, le=100, max_digits=5, decimal_places=2)
    logistics_rate_per_km: Decimal = Field(default=config.DEFAULT_RATE_PER_KM, ge=0, max_digits=10, decimal_places=2)
    min_logistics_fee: Decimal = Field(default=config.DEFAULT_MIN_LOGISTICS_FEE, ge=0, max_digits=14, decimal_places=2)
    # Manual override when the route is not in the distance table
    distance_km: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    pickup_city: Optional[str] = None


class OfferCreate(OfferPricingInput):
    valid_days: int = Field(default=config.DEFAULT_OFFER_VALID_DAYS, ge=1, le=90)


class PriceBreakdownResponse(BaseModel):
    supplier_cost: Money
    margin_percent: Money
    margin_amount: Money
    distance_km: Money
    logistics_rate_per_km: Money
    computed_logistics: Money
    min_logistics_fee: Money
    logistics_fee: Money
    minimum_fee_applied: bool
    subtotal: Money
    vat_percent: Money
    vat_amount: Money
    final_total: Money


class OfferPreviewResponse(BaseModel):
    supplier_quote_id: int
    rfq_id: int
    pickup_city: Optional[str] = None
    delivery_city: str
    distance_source: str
    estimated_delivery_days: int
    breakdown: PriceBreakdownResponse


class OfferCreateResponse(OfferPreviewResponse):
    offer_id: int
    valid_until: datetime
    status: str


class BuyerOfferResponse(BaseModel):
    """What a buyer may see: the final price only."""
    id: int
    rfq_id: int
    vat_percent: Money
    final_total: Money
    estimated_delivery_days: int
    valid_until: datetime
    status: str

    class Config:
        from_attributes = True


class AdminOfferResponse(BuyerOfferResponse):
    supplier_quote_id: int
    supplier_cost: Money
    margin_percent: Money
    margin_amount: Money
    distance_km: Money
    pickup_city: Optional[str] = None
    logistics_rate_per_km: Money
    min_logistics_fee: Money
    logistics_fee: Money
    subtotal: Money
    vat_amount: Money
    accepted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
