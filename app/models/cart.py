"""Cart model - persistent storefront cart."""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigId


class Cart(Base):
    """
    Cart owned by a logged user or by an anonymous session id.
    
    Only quantities and references are stored; prices and discounts are
    recomputed on every read.
    """
    
    __tablename__ = 'cart'
    
    id = Column(BigId, primary_key=True, autoincrement=True)
    user_id = Column(BigId, ForeignKey('app_user.id'), nullable=True, unique=True, index=True)
    session_id = Column(String(128), nullable=True, unique=True, index=True)
    
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    
    # Relationships
    user = relationship('AppUser')
    items = relationship('CartItem', back_populates='cart', cascade='all, delete-orphan',
                         order_by='CartItem.id')
    
    def __repr__(self):
        return f"<Cart(id={self.id}, user_id={self.user_id}, session_id={self.session_id})>"
