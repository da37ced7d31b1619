from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from marketplace.schemas.common import Money


class DistanceUpsert(BaseModel):
    city_from: str = Field(min_length=1, max_length=120)
    city_to: str = Field(min_length=1, max_length=120)
    distance_km: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class DistanceResponse(BaseModel):
    id: int
    city_from: str
    city_to: str
    distance_km: Money

    class Config:
        from_attributes = True


class DistanceLookupResponse(BaseModel):
    city_from: str
    city_to: str
    found: bool
    distance_km: Optional[Money] = None
