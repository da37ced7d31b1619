from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel

from marketplace.schemas.common import Money


class JobAssign(BaseModel):
    transporter_id: int


class JobStatusUpdate(BaseModel):
    status: Literal["picked_up", "in_transit", "delivered", "completed"]


class LogisticsJobResponse(BaseModel):
    id: int
    order_id: int
    transporter_id: Optional[int] = None
    pickup_address: str
    pickup_city: str
    delivery_address: str
    delivery_city: str
    distance_km: Optional[Money] = None
    agreed_rate: Money
    status: str
    pickup_scheduled_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    pod_url: Optional[str] = None
    pod_uploaded_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JobBoardRow(LogisticsJobResponse):
    order_number: Optional[str] = None
    product_name: Optional[str] = None
