"""Discount model - product-scoped and amount-tier promotions."""
from sqlalchemy import Column, String, Boolean, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigId
import enum


class DiscountType(str, enum.Enum):
    """Discount record type."""
    PRODUCT = 'PRODUCTO'   # percent off one variant
    AMOUNT = 'IMPORTE'     # percent off eligible lines when the cart amount falls in a range


class Discount(Base):
    """
    Discount record (percent value).
    
    PRODUCTO rows reference a variant. IMPORTE rows carry an inclusive
    [amount_from, amount_to] range over the discount-eligible subtotal.
    Both are only considered while active and date_from <= today <= date_to.
    """
    
    __tablename__ = 'discount'
    
    id = Column(BigId, primary_key=True, autoincrement=True)
    kind = Column(String(10), nullable=False, index=True)
    value = Column(Numeric(5, 2), nullable=False)
    description = Column(String(255), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    date_from = Column(Date, nullable=False)
    date_to = Column(Date, nullable=False)
    
    variant_id = Column(BigId, ForeignKey('variant.id', ondelete='CASCADE'), nullable=True, index=True)
    amount_from = Column(Numeric(14, 2), nullable=True)
    amount_to = Column(Numeric(14, 2), nullable=True)
    
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    variant = relationship('Variant')
    
    def to_dict(self):
        return {
            'id': self.id,
            'tipo': self.kind,
            'valor': float(self.value),
            'descripcion': self.description,
            'activo': self.active,
            'fechaDesde': self.date_from.isoformat() if self.date_from else None,
            'fechaHasta': self.date_to.isoformat() if self.date_to else None,
            'varianteId': self.variant_id,
            'cantDesde': float(self.amount_from) if self.amount_from is not None else None,
            'cantHasta': float(self.amount_to) if self.amount_to is not None else None,
        }
    
    def __repr__(self):
        return f"<Discount(id={self.id}, kind='{self.kind}', value={self.value})>"
