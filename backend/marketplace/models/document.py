from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.models.base import Base


class DocumentType:
    INVOICE = "invoice"
    POD = "pod"
    OTHER = "other"

    ALL = (INVOICE, POD, OTHER)


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(20), nullable=False)
    filename = Column(String(255), nullable=False)
    url = Column(String(512), nullable=False)
    uploaded_by = Column(String(100), nullable=True)  # actor label, e.g. "transporter:7"
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="documents")
