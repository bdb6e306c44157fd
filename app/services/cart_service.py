"""Cart Service - persistent cart operations and priced cart retrieval."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, contains_eager, joinedload

from app.exceptions import BusinessLogicError, NotFoundError, InsufficientStockError
from app.models import Cart, CartItem, Variant
from app.services import discount_service, pricing_service
from app.services.pricing_service import CartLine, CartSummary

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricedCart:
    """Cart with freshly priced lines and summary."""
    cart_id: Optional[int]
    lines: List[CartLine] = field(default_factory=list)
    summary: CartSummary = field(default_factory=CartSummary)
    amount_tier_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'carrito': {
                'id': self.cart_id,
                'items': [line.to_dict() for line in self.lines],
            },
            'resumen': self.summary.to_dict(),
        }


def _owner_filter(user_id: Optional[int], session_id: Optional[str]) -> Dict[str, Any]:
    if user_id:
        return {'user_id': user_id}
    if session_id:
        return {'session_id': session_id}
    raise BusinessLogicError('No se pudo identificar el carrito (usuario o sesión requerida)')


def resolve_cart(
    session: Session,
    user_id: Optional[int] = None,
    session_id: Optional[str] = None,
    create: bool = True
) -> Optional[Cart]:
    """
    Get the caller's cart, creating it when missing.
    One cart per user, or per anonymous session when no user is logged in.
    """
    owner = _owner_filter(user_id, session_id)
    cart = session.query(Cart).filter_by(**owner).first()

    if not cart and create:
        cart = Cart(**owner)
        session.add(cart)
        session.flush()
        logger.info(f"[CART] Created cart {cart.id} for {owner}")

    return cart


def load_active_items(session: Session, cart_id: int) -> List[CartItem]:
    """Cart items whose variant is active (inactive variants are left out)."""
    return session.query(CartItem).join(CartItem.variant).filter(
        CartItem.cart_id == cart_id,
        Variant.active.is_(True),
    ).options(
        contains_eager(CartItem.variant),
        joinedload(CartItem.product),
    ).order_by(CartItem.id).all()


def get_priced_cart(session: Session, cart: Optional[Cart], today: Optional[date] = None) -> PricedCart:
    """
    Price a cart from scratch.

    The amount tier is looked up with the subtotal of lines that carry no
    product discount and are not discount-blocked, computed after the product
    stage and before the amount stage.
    """
    if cart is None:
        return PricedCart(cart_id=None)

    items = load_active_items(session, cart.id)
    if not items:
        return PricedCart(cart_id=cart.id)

    discount_map = discount_service.get_active_product_discounts(
        session, [item.variant_id for item in items], today
    )
    lines = pricing_service.price_cart_lines(items, discount_map)

    base = pricing_service.eligible_subtotal(lines)
    tier = discount_service.get_active_amount_tier_discount(session, base, today)
    lines = pricing_service.apply_amount_tier_discount(lines, tier)

    summary = pricing_service.summarize(lines)
    logger.debug(
        f"[CART] Priced cart {cart.id}: eligible={base} tier={tier.id if tier else None} "
        f"total={summary.total}"
    )
    return PricedCart(
        cart_id=cart.id,
        lines=lines,
        summary=summary,
        amount_tier_id=tier.id if tier else None,
    )


def _get_variant(session: Session, variant_id: int) -> Variant:
    variant = session.query(Variant).options(joinedload(Variant.product)).filter(
        Variant.id == variant_id
    ).first()
    if not variant:
        raise NotFoundError('Variante no encontrada')
    if not variant.active:
        raise BusinessLogicError('Producto no disponible')
    return variant


def _get_item(session: Session, cart: Cart, item_id: int) -> CartItem:
    item = session.query(CartItem).filter(
        CartItem.id == item_id,
        CartItem.cart_id == cart.id
    ).first()
    if not item:
        raise NotFoundError('Item no encontrado')
    return item


def add_item(session: Session, cart: Cart, variant_id: int, quantity: int = 1) -> CartItem:
    """Add a variant to the cart or increment its quantity."""
    if quantity < 1:
        raise BusinessLogicError('Cantidad debe ser mayor a 0')

    variant = _get_variant(session, variant_id)

    item = session.query(CartItem).filter(
        CartItem.cart_id == cart.id,
        CartItem.variant_id == variant.id
    ).first()

    new_qty = (item.quantity if item else 0) + quantity
    if new_qty > variant.stock:
        raise InsufficientStockError(variant.name, new_qty, variant.stock)

    if item:
        item.quantity = new_qty
    else:
        item = CartItem(
            cart_id=cart.id,
            product_id=variant.product_id,
            variant_id=variant.id,
            quantity=quantity
        )
        session.add(item)

    cart.updated_at = datetime.now()
    session.flush()
    logger.info(f"[CART] Cart {cart.id}: variant {variant.id} qty={new_qty}")
    return item


def update_item_quantity(session: Session, cart: Cart, item_id: int, quantity: int) -> CartItem:
    """Set the quantity of a cart line."""
    if quantity is None or quantity < 1:
        raise BusinessLogicError('Cantidad debe ser mayor a 0')

    item = _get_item(session, cart, item_id)
    if item.variant is not None and quantity > item.variant.stock:
        raise InsufficientStockError(item.variant.name, quantity, item.variant.stock)

    item.quantity = quantity
    cart.updated_at = datetime.now()
    session.flush()
    return item


def remove_item(session: Session, cart: Cart, item_id: int) -> None:
    """Remove a line from the cart."""
    item = _get_item(session, cart, item_id)
    session.delete(item)
    cart.updated_at = datetime.now()
    session.flush()


def clear_cart(session: Session, cart: Optional[Cart]) -> None:
    """Remove all lines from the cart."""
    if cart is None:
        return
    session.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session='fetch')
    cart.updated_at = datetime.now()
    session.flush()


def merge_session_cart(session: Session, user_id: int, session_id: Optional[str]) -> Optional[Cart]:
    """
    Move the anonymous cart of session_id into the user's cart after login.
    Quantities of variants present in both are added up.
    """
    if not session_id:
        return None
    anonymous = session.query(Cart).filter_by(session_id=session_id).first()
    if not anonymous or not anonymous.items:
        return None

    cart = resolve_cart(session, user_id=user_id)
    existing = {item.variant_id: item for item in cart.items}
    for item in list(anonymous.items):
        target = existing.get(item.variant_id)
        if target:
            target.quantity += item.quantity
        else:
            cart.items.append(CartItem(
                product_id=item.product_id,
                variant_id=item.variant_id,
                quantity=item.quantity
            ))
    session.delete(anonymous)
    session.flush()
    logger.info(f"[CART] Merged session cart {anonymous.id} into cart {cart.id}")
    return cart
