"""Cart item model."""
from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base, BigId


class CartItem(Base):
    """One variant and its quantity inside a cart."""
    
    __tablename__ = 'cart_item'
    __table_args__ = (
        UniqueConstraint('cart_id', 'variant_id', name='uq_cart_item_variant'),
    )
    
    id = Column(BigId, primary_key=True, autoincrement=True)
    cart_id = Column(BigId, ForeignKey('cart.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigId, ForeignKey('product.id'), nullable=False)
    variant_id = Column(BigId, ForeignKey('variant.id'), nullable=True, index=True)
    quantity = Column(Integer, nullable=False, default=1)
    
    # Relationships
    cart = relationship('Cart', back_populates='items')
    product = relationship('Product')
    variant = relationship('Variant')
    
    def __repr__(self):
        return f"<CartItem(id={self.id}, variant_id={self.variant_id}, quantity={self.quantity})>"
