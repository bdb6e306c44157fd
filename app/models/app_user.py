"""AppUser model - storefront customers and administrators."""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from werkzeug.security import generate_password_hash, check_password_hash
from app.database import Base, BigId


class UserRole:
    """Allowed values for AppUser.role."""
    CUSTOMER = 'cliente'
    ADMIN = 'admin'


class AppUser(Base):
    """AppUser model - email/password accounts."""
    
    __tablename__ = 'app_user'
    
    id = Column(BigId, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=True)
    full_name = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER)
    active = Column(Boolean, nullable=False, default=True)
    
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    
    # Relationships
    orders = relationship('Order', back_populates='user')
    addresses = relationship('ShippingAddress', back_populates='user', cascade='all, delete-orphan',
                             order_by='ShippingAddress.id')
    
    def set_password(self, password):
        """Set password hash."""
        self.password_hash = generate_password_hash(password, method='scrypt')
    
    def check_password(self, password):
        """Check password against hash."""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)
    
    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN
    
    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'nombre': self.full_name,
            'telefono': self.phone,
            'rol': self.role,
        }
    
    def __repr__(self):
        return f"<AppUser(id={self.id}, email='{self.email}', role='{self.role}')>"
