from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.models.base import Base


class ProductCategory(Base):
    __tablename__ = "product_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    products = relationship("SupplierProduct", back_populates="category")


class SupplierProduct(Base):
    """A supplier's standing catalog listing. Informational; RFQs are still quoted one by one."""
    __tablename__ = "supplier_products"

    id = Column(Integer, primary_key=True, index=True)
    supplier_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("product_categories.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    price_per_unit = Column(Numeric(14, 2), nullable=False)
    unit = Column(String(32), nullable=False)
    minimum_order_quantity = Column(Numeric(14, 2), nullable=False, default=1)
    stock_available = Column(Numeric(14, 2), nullable=True)
    lead_time_days = Column(Integer, nullable=False, default=7)
    location_city = Column(String(120), nullable=True)
    location_province = Column(String(120), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    supplier = relationship("Profile", back_populates="products")
    category = relationship("ProductCategory", back_populates="products")
