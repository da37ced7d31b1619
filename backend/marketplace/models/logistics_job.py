from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.models.base import Base


class JobStatus:
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    POD_UPLOADED = "pod_uploaded"
    COMPLETED = "completed"


class LogisticsJob(Base):
    __tablename__ = "logistics_jobs"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)
    transporter_id = Column(Integer, ForeignKey("profiles.id"), nullable=True, index=True)
    pickup_address = Column(Text, nullable=False)
    pickup_city = Column(String(120), nullable=False)
    delivery_address = Column(Text, nullable=False)
    delivery_city = Column(String(120), nullable=False)
    distance_km = Column(Numeric(10, 2), nullable=True)
    agreed_rate = Column(Numeric(14, 2), nullable=False)
    status = Column(String(20), default=JobStatus.PENDING, nullable=False, index=True)
    pickup_scheduled_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    pod_url = Column(String(512), nullable=True)
    pod_uploaded_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    order = relationship("Order", back_populates="logistics_job")
    transporter = relationship("Profile")
