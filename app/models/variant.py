"""Variant model - the sellable unit of a Product."""
from sqlalchemy import Column, String, Boolean, Integer, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigId


class Variant(Base):
    """
    Variant - concrete SKU with its own price and stock.
    
    discount_blocked excludes the variant from amount-tier discounts
    (product-level discounts still apply).
    """
    
    __tablename__ = 'variant'
    
    id = Column(BigId, primary_key=True, autoincrement=True)
    product_id = Column(BigId, ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(220), nullable=False, unique=True)
    sku = Column(String(100), nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0, server_default='0')
    image_url = Column(String(500), nullable=True)
    discount_blocked = Column(Boolean, nullable=False, default=False, server_default='false')
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    product = relationship('Product', back_populates='variants')
    
    def __repr__(self):
        return f"<Variant(id={self.id}, name='{self.name}', price={self.price})>"
