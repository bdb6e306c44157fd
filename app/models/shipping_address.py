"""ShippingAddress model - saved delivery addresses of a customer."""
from sqlalchemy import Column, String, Boolean, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base, BigId


class ShippingAddress(Base):
    """
    Saved address. A user has at most one address with is_primary set;
    address_service clears the flag on the others when it moves.
    """

    __tablename__ = 'shipping_address'

    id = Column(BigId, primary_key=True, autoincrement=True)
    user_id = Column(BigId, ForeignKey('app_user.id', ondelete='CASCADE'), nullable=False, index=True)
    recipient_name = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=False)
    street = Column(String(200), nullable=False)
    number = Column(String(20), nullable=False, default='')
    cross_street = Column(String(200), nullable=True)
    reference = Column(String(255), nullable=False, default='')
    postal_code = Column(String(20), nullable=False, default='')
    department = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    neighborhood = Column(String(100), nullable=True)
    lat = Column(Numeric(10, 7), nullable=True)
    lng = Column(Numeric(10, 7), nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship('AppUser', back_populates='addresses')

    def one_line(self):
        """Address as stored on an order: 'Calle 123 c/ Transversal, Barrio, Ciudad (ref)'."""
        street = f"{self.street} {self.number}".strip()
        if self.cross_street:
            street = f"{street} c/ {self.cross_street}"
        parts = [street] + [p for p in (self.neighborhood, self.city, self.department) if p]
        text = ', '.join(parts)
        if self.reference:
            text = f"{text} ({self.reference})"
        return text

    def to_dict(self):
        return {
            'id': self.id,
            'usuarioId': self.user_id,
            'nombreCompleto': self.recipient_name,
            'telefono': self.phone,
            'calle': self.street,
            'numero': self.number,
            'transversal': self.cross_street,
            'referencia': self.reference,
            'codigoPostal': self.postal_code,
            'departamento': self.department,
            'ciudad': self.city,
            'barrio': self.neighborhood,
            'lat': float(self.lat) if self.lat is not None else None,
            'lng': float(self.lng) if self.lng is not None else None,
            'esPrincipal': self.is_primary,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<ShippingAddress(id={self.id}, user_id={self.user_id}, primary={self.is_primary})>"
