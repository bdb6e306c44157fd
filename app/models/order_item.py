"""Order item model - priced line snapshot."""
from sqlalchemy import Column, String, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base, BigId


class OrderItem(Base):
    """
    Order line frozen at checkout.
    
    Copies the priced cart line so later price or discount changes do not
    alter placed orders.
    """
    
    __tablename__ = 'order_item'
    
    id = Column(BigId, primary_key=True, autoincrement=True)
    order_id = Column(BigId, ForeignKey('customer_order.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigId, ForeignKey('product.id'), nullable=False)
    variant_id = Column(BigId, ForeignKey('variant.id'), nullable=True)
    
    product_name = Column(String(200), nullable=False)
    sku = Column(String(100), nullable=True)
    image_url = Column(String(500), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount_percent = Column(Numeric(5, 2), nullable=False, default=0)
    discount_kind = Column(String(10), nullable=True)
    discount_amount = Column(Numeric(14, 2), nullable=False, default=0)
    subtotal = Column(Numeric(14, 2), nullable=False)
    total = Column(Numeric(14, 2), nullable=False)
    
    # Relationships
    order = relationship('Order', back_populates='items')
    
    def to_dict(self):
        return {
            'id': self.id,
            'productoId': self.product_id,
            'varianteId': self.variant_id,
            'nombreProducto': self.product_name,
            'sku': self.sku,
            'imagenUrl': self.image_url,
            'cantidad': self.quantity,
            'precioUnitario': float(self.unit_price),
            'descuento': float(self.discount_percent),
            'tipoDescuento': self.discount_kind or '',
            'importeDescuento': float(self.discount_amount),
            'subtotal': float(self.subtotal),
            'total': float(self.total),
        }
    
    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, quantity={self.quantity})>"
