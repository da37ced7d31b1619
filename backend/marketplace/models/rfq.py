from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.models.base import Base


class RFQStatus:
    NEW = "new"
    SOURCING = "sourcing"
    QUOTED = "quoted"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"

    # Suppliers may quote while the RFQ is in one of these
    OPEN = (NEW, SOURCING)


class RFQ(Base):
    __tablename__ = "rfqs"

    id = Column(Integer, primary_key=True, index=True)
    reference_number = Column(String(32), unique=True, nullable=True, index=True)  # set after first flush
    buyer_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)
    product_category_id = Column(Integer, ForeignKey("product_categories.id"), nullable=True, index=True)
    quantity = Column(Numeric(14, 2), nullable=False)
    unit = Column(String(32), nullable=False)
    delivery_address = Column(Text, nullable=False)
    delivery_city = Column(String(120), nullable=False)
    delivery_province = Column(String(120), nullable=False)
    delivery_postal_code = Column(String(16), nullable=True)
    required_by = Column(Date, nullable=True)
    additional_notes = Column(Text, nullable=True)
    status = Column(String(20), default=RFQStatus.NEW, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    buyer = relationship("Profile", back_populates="rfqs")
    category = relationship("ProductCategory")
    quotes = relationship("SupplierQuote", back_populates="rfq", order_by="SupplierQuote.total_price")
    offer = relationship("ClientOffer", back_populates="rfq", uselist=False)
    order = relationship("Order", back_populates="rfq", uselist=False)
