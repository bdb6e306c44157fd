"""Order model (pedido)."""
from sqlalchemy import Column, String, Text, Numeric, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigId
import enum


class OrderStatus(str, enum.Enum):
    """Order fulfilment status."""
    PENDING = 'pendiente'
    CONFIRMED = 'confirmado'
    PREPARING = 'preparando'
    SHIPPED = 'enviado'
    DELIVERED = 'entregado'
    CANCELLED = 'cancelado'


class PaymentMethod(str, enum.Enum):
    """Accepted payment methods."""
    CASH = 'efectivo'
    CARD = 'tarjeta'
    TRANSFER = 'transferencia'
    PAYPAL = 'paypal'
    OTHER = 'otros'


class PaymentStatus(str, enum.Enum):
    """Payment status of an order."""
    PENDING = 'pendiente'
    PAID = 'pagado'
    REJECTED = 'rechazado'
    REFUNDED = 'reembolsado'


# Allowed status transitions; DELIVERED and CANCELLED are final
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class Order(Base):
    """Placed order. Amounts are the priced-cart snapshot at checkout time."""
    
    __tablename__ = 'customer_order'
    
    id = Column(BigId, primary_key=True, autoincrement=True)
    order_number = Column(String(50), nullable=False, unique=True)
    user_id = Column(BigId, ForeignKey('app_user.id'), nullable=True, index=True)
    session_id = Column(String(128), nullable=True, index=True)
    
    customer_name = Column(String(200), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    shipping_address = Column(String(500), nullable=True)
    shipping_address_id = Column(BigId, ForeignKey('shipping_address.id', ondelete='SET NULL'), nullable=True)
    
    status = Column(String(20), nullable=False, default=OrderStatus.PENDING.value)
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    
    subtotal = Column(Numeric(14, 2), nullable=False)
    discount_amount = Column(Numeric(14, 2), nullable=False, default=0)
    shipping_cost = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False)
    
    customer_notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)
    tracking_code = Column(String(100), nullable=True)
    estimated_delivery = Column(Date, nullable=True)
    
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    user = relationship('AppUser', back_populates='orders')
    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan',
                         order_by='OrderItem.id')
    
    def to_dict(self, include_items=True):
        data = {
            'id': self.id,
            'numeroPedido': self.order_number,
            'usuarioId': self.user_id,
            'cliente': {
                'nombre': self.customer_name,
                'email': self.customer_email,
                'telefono': self.customer_phone,
                'direccion': self.shipping_address,
                'direccionId': self.shipping_address_id,
            },
            'estado': self.status,
            'metodoPago': self.payment_method,
            'estadoPago': self.payment_status,
            'subtotal': float(self.subtotal),
            'importeDescuento': float(self.discount_amount),
            'costoEnvio': float(self.shipping_cost),
            'total': float(self.total),
            'notasCliente': self.customer_notes,
            'codigoSeguimiento': self.tracking_code,
            'fechaEstimadaEntrega': self.estimated_delivery.isoformat() if self.estimated_delivery else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data
    
    def __repr__(self):
        return f"<Order(id={self.id}, number='{self.order_number}', total={self.total}, status='{self.status}')>"
