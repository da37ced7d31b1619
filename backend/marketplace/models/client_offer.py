from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.models.base import Base


class OfferStatus:
    PENDING = "pending"
    ACCEPTED = "accepted"


class ClientOffer(Base):
    """Admin-published buyer price. Cost and margin columns never leave the admin API."""
    __tablename__ = "client_offers"

    id = Column(Integer, primary_key=True, index=True)
    rfq_id = Column(Integer, ForeignKey("rfqs.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    supplier_quote_id = Column(Integer, ForeignKey("supplier_quotes.id"), nullable=False, unique=True)
    created_by = Column(Integer, nullable=True)  # admin user id from the actor claim

    supplier_cost = Column(Numeric(18, 4), nullable=False)
    margin_percent = Column(Numeric(6, 2), nullable=False)
    margin_amount = Column(Numeric(14, 2), nullable=False)
    distance_km = Column(Numeric(10, 2), nullable=False)
    pickup_city = Column(String(120), nullable=True)
    logistics_rate_per_km = Column(Numeric(10, 2), nullable=False)
    min_logistics_fee = Column(Numeric(14, 2), nullable=False)
    logistics_fee = Column(Numeric(14, 2), nullable=False)
    subtotal = Column(Numeric(14, 2), nullable=False)
    vat_percent = Column(Numeric(6, 2), nullable=False)
    vat_amount = Column(Numeric(14, 2), nullable=False)
    final_total = Column(Numeric(14, 2), nullable=False)

    estimated_delivery_days = Column(Integer, nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=False)
    status = Column(String(20), default=OfferStatus.PENDING, nullable=False)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    rfq = relationship("RFQ", back_populates="offer")
    supplier_quote = relationship("SupplierQuote", back_populates="offer")
    order = relationship("Order", back_populates="client_offer", uselist=False)
