"""
Order service with transactional logic.
Places orders from the priced cart and handles status transitions.
"""
import logging
import secrets
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.exceptions import (
    ShopError, BusinessLogicError, NotFoundError, ForbiddenError, InsufficientStockError
)
from app.models import (
    Cart, CartItem, Variant, Order, OrderItem,
    OrderStatus, PaymentMethod, ORDER_TRANSITIONS
)
from app.services import address_service, cart_service
from app.services.catalog_service import invalidate_catalog_cache

logger = logging.getLogger(__name__)

CONTACT_PAYMENT = 'contacto'


def generate_order_number(session: Session, today: Optional[date] = None) -> str:
    """PED-YYYYMMDD-NNNN, retried until unused."""
    today = today or date.today()
    for _ in range(10):
        number = f"PED-{today.strftime('%Y%m%d')}-{secrets.randbelow(10000):04d}"
        if not session.query(Order.id).filter_by(order_number=number).first():
            return number
    raise BusinessLogicError('No se pudo generar el número de pedido, intente nuevamente', status_code=503)


def place_order(
    session: Session,
    cart: Optional[Cart],
    customer: Dict[str, Any],
    payment_method: str,
    shipping_cost: Decimal = Decimal('0'),
    notes: str = '',
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
    delivery_days: int = 3,
    today: Optional[date] = None,
    address_id: Optional[int] = None
) -> Order:
    """
    Create an order from the caller's cart in a single transaction.

    Steps:
        1. Lock the cart's variant rows FOR UPDATE
        2. Price the cart (same pipeline as GET /carrito)
        3. Validate and decrement stock
        4. Persist Order + OrderItem snapshots
        5. Empty the cart

    address_id picks one of the buyer's saved addresses; its text replaces
    customer['direccion'] on the order.
    """
    if cart is None:
        raise BusinessLogicError('El carrito está vacío')

    try:
        address = None
        if address_id:
            address = address_service.get_owned_address(session, address_id, user_id)

        # 1. Lock stock levels
        variant_ids = [row[0] for row in session.query(CartItem.variant_id).filter(
            CartItem.cart_id == cart.id,
            CartItem.variant_id.isnot(None)
        ).all()]
        locked = _lock_variants(session, variant_ids)

        # 2. Price
        priced = cart_service.get_priced_cart(session, cart, today)
        if not priced.lines:
            raise BusinessLogicError('El carrito está vacío')

        # 3. Validate and decrement stock
        for line in priced.lines:
            variant = locked.get(line.variant_id)
            if variant is None:
                raise NotFoundError(f'Variante {line.variant_id} no encontrada')
            if variant.stock < line.quantity:
                raise InsufficientStockError(line.name, line.quantity, variant.stock)
            variant.stock -= line.quantity

        # 4. Create Order
        is_contact = payment_method == CONTACT_PAYMENT
        summary = priced.summary
        order = Order(
            order_number=generate_order_number(session, today),
            user_id=user_id,
            session_id=session_id,
            customer_name=customer['nombre'],
            customer_email=customer['email'],
            customer_phone=customer.get('telefono') or (address.phone if address else None),
            shipping_address=address.one_line() if address else (customer.get('direccion') or None),
            shipping_address_id=address.id if address else None,
            status=(OrderStatus.PENDING if is_contact else OrderStatus.CONFIRMED).value,
            payment_method=PaymentMethod.OTHER.value if is_contact else payment_method,
            subtotal=summary.subtotal,
            discount_amount=summary.discount_amount,
            shipping_cost=shipping_cost,
            total=summary.total + shipping_cost,
            customer_notes=notes or customer.get('notas') or None,
            estimated_delivery=(today or date.today()) + timedelta(days=delivery_days),
        )
        for line in priced.lines:
            order.items.append(OrderItem(
                product_id=line.product_id,
                variant_id=line.variant_id,
                product_name=line.name,
                sku=locked[line.variant_id].sku,
                image_url=line.image or None,
                quantity=line.quantity,
                unit_price=line.unit_price,
                discount_percent=line.discount_percent,
                discount_kind=line.discount_kind.value or None,
                discount_amount=line.discount_amount,
                subtotal=line.subtotal,
                total=line.total,
            ))
        session.add(order)

        # 5. Clean up
        cart_service.clear_cart(session, cart)
        session.commit()

    except ShopError:
        session.rollback()
        raise
    except Exception as e:
        session.rollback()
        logger.exception(f"[ORDER] Error placing order for cart {cart.id}")
        raise ShopError(f'Error al crear pedido: {str(e)}') from e

    invalidate_catalog_cache()

    logger.info(
        f"[ORDER] Order {order.order_number} placed: {len(order.items)} items, total={order.total}"
    )
    return order


def get_order(session: Session, order_id: int, user=None, session_id: Optional[str] = None) -> Order:
    """Order visible to its owner (user or anonymous session) or an admin."""
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError('Pedido no encontrado')

    if user is not None and user.is_admin:
        return order
    if user is not None and order.user_id == user.id:
        return order
    if order.user_id is None and session_id and order.session_id == session_id:
        return order
    raise ForbiddenError()


def list_orders(
    session: Session,
    user_id: Optional[int] = None,
    status: Optional[str] = None,
    page: int = 1,
    per_page: int = 10
) -> Tuple[List[Order], int]:
    """Paginated orders, newest first. user_id=None lists every order."""
    query = session.query(Order)
    if user_id is not None:
        query = query.filter(Order.user_id == user_id)
    if status:
        query = query.filter(Order.status == status)

    total = query.count()
    orders = query.order_by(Order.created_at.desc(), Order.id.desc()).limit(per_page).offset(
        (page - 1) * per_page
    ).all()
    return orders, total


def update_order_status(
    session: Session,
    order_id: int,
    status: str,
    tracking_code: Optional[str] = None,
    internal_notes: Optional[str] = None
) -> Order:
    """
    Move an order to a new status following ORDER_TRANSITIONS.
    Cancelling returns the ordered quantities to stock.
    """
    try:
        new_status = OrderStatus(status)
    except ValueError:
        raise BusinessLogicError(f'Estado inválido: {status}')

    order = session.query(Order).filter(Order.id == order_id).with_for_update().first()
    if not order:
        raise NotFoundError('Pedido no encontrado')

    current = OrderStatus(order.status)
    if new_status not in ORDER_TRANSITIONS[current]:
        raise BusinessLogicError(
            f'No se puede pasar un pedido de "{current.value}" a "{new_status.value}"'
        )

    try:
        if new_status == OrderStatus.CANCELLED:
            _restore_stock(session, order)

        order.status = new_status.value
        if tracking_code:
            order.tracking_code = tracking_code
        if internal_notes:
            order.internal_notes = internal_notes
        order.updated_at = datetime.now()
        session.commit()
    except Exception:
        session.rollback()
        raise

    if new_status == OrderStatus.CANCELLED:
        invalidate_catalog_cache()
    logger.info(f"[ORDER] Order {order.order_number}: {current.value} -> {new_status.value}")
    return order


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _lock_variants(session: Session, variant_ids: List[int]) -> Dict[int, Variant]:
    """Lock variant rows FOR UPDATE and return them by id."""
    if not variant_ids:
        return {}
    variants = session.query(Variant).filter(
        Variant.id.in_(sorted(set(variant_ids)))
    ).order_by(Variant.id).with_for_update().all()
    return {v.id: v for v in variants}


def _restore_stock(session: Session, order: Order) -> None:
    locked = _lock_variants(session, [item.variant_id for item in order.items if item.variant_id])
    for item in order.items:
        variant = locked.get(item.variant_id)
        if variant is not None:
            variant.stock += item.quantity


def list_user_orders(
    session: Session,
    user_id: int,
    page: int = 1,
    per_page: int = 10,
    status: Optional[str] = None
) -> Tuple[List[Order], int]:
    """Orders of one customer, newest first."""
    return list_orders(session, user_id=user_id, status=status, page=page, per_page=per_page)
