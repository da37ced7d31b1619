from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel

from marketplace.schemas.common import Money
from marketplace.schemas.offer import BuyerOfferResponse


class DocumentResponse(BaseModel):
    id: int
    order_id: int
    document_type: str
    filename: str
    url: str
    uploaded_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JobSummary(BaseModel):
    id: int
    status: str
    transporter_id: Optional[int] = None
    pickup_city: str
    delivery_city: str
    agreed_rate: Money
    pickup_scheduled_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    pod_url: Optional[str] = None

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    order_number: Optional[str] = None
    rfq_id: int
    client_offer_id: int
    buyer_id: int
    total_amount: Money
    vat_amount: Money
    payment_status: str
    payment_verified_at: Optional[datetime] = None
    status: str
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrderListRow(OrderResponse):
    rfq_reference: Optional[str] = None
    product_name: Optional[str] = None
    logistics_job: Optional[JobSummary] = None


class OrderDetailResponse(OrderListRow):
    offer: BuyerOfferResponse
    documents: List[DocumentResponse] = []
