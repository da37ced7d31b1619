from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from marketplace.models.base import Base


class AuditEvent(Base):
    """Audit trail: who moved which record where, and when."""
    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, index=True)
    entity_type = Column(String(50), nullable=False, index=True)  # rfq, supplier_quote, client_offer, order, logistics_job
    entity_id = Column(Integer, nullable=False, index=True)
    action = Column(String(50), nullable=False)  # created, sourcing, quoted, accepted, payment_verified, ...
    actor = Column(String(100), nullable=True)   # "<role>:<user id>"
    created_at = Column(DateTime(timezone=True), server_default=func.now())
