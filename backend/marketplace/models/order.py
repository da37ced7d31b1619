from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.models.base import Base


class PaymentStatus:
    PENDING = "pending"
    VERIFIED = "verified"


class OrderStatus:
    ACCEPTED = "accepted"
    PAYMENT_VERIFIED = "payment_verified"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, nullable=True, index=True)  # set after first flush
    rfq_id = Column(Integer, ForeignKey("rfqs.id"), nullable=False, unique=True)
    client_offer_id = Column(Integer, ForeignKey("client_offers.id"), nullable=False, unique=True)
    buyer_id = Column(Integer, ForeignKey("profiles.id"), nullable=False, index=True)
    total_amount = Column(Numeric(14, 2), nullable=False)
    vat_amount = Column(Numeric(14, 2), nullable=False)
    payment_status = Column(String(20), default=PaymentStatus.PENDING, nullable=False)
    payment_verified_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), default=OrderStatus.ACCEPTED, nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    rfq = relationship("RFQ", back_populates="order")
    client_offer = relationship("ClientOffer", back_populates="order")
    buyer = relationship("Profile")
    logistics_job = relationship("LogisticsJob", back_populates="order", uselist=False)
    documents = relationship("Document", back_populates="order", order_by="Document.created_at")
