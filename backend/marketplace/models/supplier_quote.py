from sqlalchemy import (
    Boolean, Column, Integer, Text, Date, DateTime, ForeignKey, Numeric, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.models.base import Base


class SupplierQuote(Base):
    """A supplier's bid against one RFQ. Frozen once selected for a client offer."""
    __tablename__ = "supplier_quotes"
    __table_args__ = (UniqueConstraint("rfq_id", "supplier_id", name="uq_supplier_quotes_rfq_supplier"),)

    id = Column(Integer, primary_key=True, index=True)
    rfq_id = Column(Integer, ForeignKey("rfqs.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    price_per_unit = Column(Numeric(14, 2), nullable=False)
    total_price = Column(Numeric(18, 4), nullable=False)  # price_per_unit * rfq.quantity, server-derived
    lead_time_days = Column(Integer, nullable=False)
    valid_until = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    is_selected = Column(Boolean, default=False, nullable=False)
    selected_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    rfq = relationship("RFQ", back_populates="quotes")
    supplier = relationship("Profile", back_populates="quotes")
    offer = relationship("ClientOffer", back_populates="supplier_quote", uselist=False)
