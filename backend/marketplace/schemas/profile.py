from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel, Field


class ProfileCreate(BaseModel):
    company_name: str = Field(min_length=1, max_length=255)
    role: Literal["buyer", "supplier", "transporter"]
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    vat_number: Optional[str] = Field(default=None, max_length=32)
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, max_length=16)


class ProfileUpdate(BaseModel):
    """Self-service edit of company details. Role and approval are not editable here."""
    company_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    vat_number: Optional[str] = Field(default=None, max_length=32)
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, max_length=16)


class ProfileApproval(BaseModel):
    is_approved: bool


class ProfileResponse(BaseModel):
    id: int
    company_name: str
    role: str
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    vat_number: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    is_approved: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
