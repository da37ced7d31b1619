from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.models.base import Base


class Role:
    BUYER = "buyer"
    SUPPLIER = "supplier"
    TRANSPORTER = "transporter"
    ADMIN = "admin"

    ALL = (BUYER, SUPPLIER, TRANSPORTER, ADMIN)
    SELF_REGISTER = (BUYER, SUPPLIER, TRANSPORTER)


class Profile(Base):
    """A marketplace participant. Role is fixed at registration."""
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)
    contact_person = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(120), nullable=True)
    province = Column(String(120), nullable=True)
    postal_code = Column(String(16), nullable=True)
    vat_number = Column(String(32), nullable=True)
    is_approved = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    rfqs = relationship("RFQ", back_populates="buyer")
    quotes = relationship("SupplierQuote", back_populates="supplier")
    products = relationship("SupplierProduct", back_populates="supplier", cascade="all, delete-orphan")
