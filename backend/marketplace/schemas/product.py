from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from marketplace.schemas.common import Money


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    category_id: int
    name: str = Field(min_length=3, max_length=255)
    description: Optional[str] = None
    price_per_unit: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    unit: str = Field(min_length=1, max_length=32)
    minimum_order_quantity: Decimal = Field(default=Decimal("1"), gt=0, max_digits=14, decimal_places=2)
    stock_available: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    lead_time_days: int = Field(default=7, ge=1)
    location_city: Optional[str] = None
    location_province: Optional[str] = None


class ProductUpdate(BaseModel):
    category_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=3, max_length=255)
    description: Optional[str] = None
    price_per_unit: Optional[Decimal] = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    unit: Optional[str] = Field(default=None, min_length=1, max_length=32)
    minimum_order_quantity: Optional[Decimal] = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    stock_available: Optional[Decimal] = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    lead_time_days: Optional[int] = Field(default=None, ge=1)
    location_city: Optional[str] = None
    location_province: Optional[str] = None
    is_active: Optional[bool] = None


class ProductResponse(BaseModel):
    id: int
    supplier_id: int
    category_id: int
    category_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    price_per_unit: Money
    unit: str
    minimum_order_quantity: Money
    stock_available: Optional[Money] = None
    lead_time_days: int
    location_city: Optional[str] = None
    location_province: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CatalogRow(ProductResponse):
    """Admin catalog view: a listing plus who to call about it."""
    supplier_company: Optional[str] = None
    supplier_contact_person: Optional[str] = None
    supplier_email: Optional[str] = None
    supplier_phone: Optional[str] = None
    supplier_city: Optional[str] = None
