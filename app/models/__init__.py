"""Models package - exports all SQLAlchemy models."""
# Accounts
from app.models.app_user import AppUser, UserRole

# Catalog
from app.models.product import Product
from app.models.variant import Variant
from app.models.discount import Discount, DiscountType

# Cart
from app.models.cart import Cart
from app.models.cart_item import CartItem

# Orders
from app.models.order import Order, OrderStatus, PaymentMethod, PaymentStatus, ORDER_TRANSITIONS
from app.models.order_item import OrderItem

# Addresses
from app.models.shipping_address import ShippingAddress

__all__ = [
    'AppUser', 'UserRole',
    'Product', 'Variant', 'Discount', 'DiscountType',
    'Cart', 'CartItem',
    'Order', 'OrderStatus', 'PaymentMethod', 'PaymentStatus', 'ORDER_TRANSITIONS', 'OrderItem',
    'ShippingAddress',
]
