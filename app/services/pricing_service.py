"""
Cart pricing engine.

Pure functions that turn cart items plus the active discount records into
priced lines and a cart summary. Nothing here touches the database; the
lookups live in discount_service and the orchestration in cart_service.

Pipeline (see cart_service.get_priced_cart):
    1. price_cart_lines        - at most one PRODUCTO discount per line
    2. eligible_subtotal       - base for the IMPORTE tier lookup
    3. apply_amount_tier_discount
    4. summarize
"""
import enum
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.exceptions import PricingError
from app.utils.formatters import format_gs, money_json, round_money, to_decimal

ZERO = Decimal('0')
HUNDRED = Decimal('100')


class DiscountKind(str, enum.Enum):
    """Which discount stage priced a line. Mutually exclusive."""
    NONE = ''
    PRODUCT = 'PRODUCTO'
    AMOUNT = 'IMPORTE'


@dataclass(frozen=True)
class CartLine:
    """One priced cart line. total == subtotal - discount_amount."""
    item_id: int
    variant_id: Optional[int]
    product_id: int
    name: str
    slug: Optional[str]
    image: str
    stock: int
    unit_price: Decimal
    quantity: int
    discount_blocked: bool
    subtotal: Decimal
    discount_percent: Decimal = ZERO
    discount_kind: DiscountKind = DiscountKind.NONE
    discount_amount: Decimal = ZERO
    total: Decimal = ZERO
    description: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.item_id,
            'itemCarritoId': self.item_id,
            'varianteId': self.variant_id,
            'productoId': self.product_id,
            'nombre': self.name,
            'slug': self.slug,
            'imagen': self.image,
            'precio': money_json(self.unit_price),
            'cantidad': self.quantity,
            'subtotal': money_json(self.subtotal),
            'total': money_json(self.total),
            'descuento': money_json(self.discount_percent),
            'bloqueoDescuento': self.discount_blocked,
            'importeDescuento': money_json(self.discount_amount),
            'descripcion': self.description,
            'tipoDescuento': self.discount_kind.value,
            'stock': self.stock,
        }


@dataclass(frozen=True)
class CartSummary:
    subtotal: Decimal = ZERO
    discount_amount: Decimal = ZERO
    total: Decimal = ZERO
    line_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subTotal': money_json(self.subtotal),
            'importeDescuento': money_json(self.discount_amount),
            'total': money_json(self.total),
            'cantidadItems': self.line_count,
        }


def format_percent(value: Decimal) -> str:
    """15.00 -> '15', 12.50 -> '12.5'."""
    return format(value.normalize(), 'f')


def describe_discount(kind: DiscountKind, percent: Decimal, amount: Decimal) -> str:
    """Human readable line discount, e.g. 'Por producto (15%) - 3.000 Gs'."""
    label = 'Por producto' if kind == DiscountKind.PRODUCT else 'Por importe'
    return f"{label} ({format_percent(percent)}%) - {format_gs(amount)} Gs"


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    return round_money(amount * percent / HUNDRED)


def _discounted(line: CartLine, kind: DiscountKind, percent: Decimal) -> CartLine:
    discount_amount = percent_of(line.subtotal, percent)
    return replace(
        line,
        discount_percent=percent,
        discount_kind=kind,
        discount_amount=discount_amount,
        total=line.subtotal - discount_amount,
        description=describe_discount(kind, percent, discount_amount),
    )


def _base_line(item: Any) -> CartLine:
    """Build an undiscounted line from a cart item row and its variant."""
    variant = getattr(item, 'variant', None)
    product = getattr(item, 'product', None)

    # Variant missing: fall back to the parent product
    source = variant if variant is not None else product
    if source is None:
        raise PricingError(f'El item {item.id} del carrito no tiene variante ni producto')
    if source.price is None:
        raise PricingError(f'"{source.name}" no tiene precio')

    unit_price = to_decimal(source.price)
    quantity = int(item.quantity)
    subtotal = unit_price * quantity

    return CartLine(
        item_id=item.id,
        variant_id=item.variant_id,
        product_id=item.product_id,
        name=source.name,
        slug=source.slug,
        image=(variant.image_url or '') if variant is not None else '',
        stock=source.stock,
        unit_price=unit_price,
        quantity=quantity,
        discount_blocked=bool(variant.discount_blocked) if variant is not None else False,
        subtotal=subtotal,
        total=subtotal,
    )


def price_cart_lines(raw_items: Iterable[Any], discount_map: Mapping[int, Any]) -> List[CartLine]:
    """
    Price each cart item, applying at most one product discount.

    Args:
        raw_items: CartItem rows with their variant (and product) loaded
        discount_map: variant_id -> Discount (PRODUCTO) as returned by
            discount_service.get_active_product_discounts

    Returns:
        Lines with kind PRODUCT (discount found, value > 0) or NONE.
    """
    lines = []
    for item in raw_items:
        line = _base_line(item)
        discount = discount_map.get(line.variant_id) if line.variant_id is not None else None
        percent = to_decimal(discount.value) if discount is not None else ZERO
        if percent > 0:
            line = _discounted(line, DiscountKind.PRODUCT, percent)
        lines.append(line)
    return lines


def is_amount_eligible(line: CartLine) -> bool:
    return line.discount_kind != DiscountKind.PRODUCT and not line.discount_blocked


def eligible_subtotal(lines: Iterable[CartLine]) -> Decimal:
    """Subtotal of the lines the amount-tier stage may discount."""
    return sum((line.subtotal for line in lines if is_amount_eligible(line)), ZERO)


def apply_amount_tier_discount(lines: List[CartLine], tier: Optional[Any]) -> List[CartLine]:
    """
    Apply the tier percent to every eligible line.

    Lines with a product discount or a discount-blocked variant are
    returned untouched.
    """
    percent = to_decimal(tier.value) if tier is not None else ZERO
    if percent <= 0:
        return lines

    return [
        _discounted(line, DiscountKind.AMOUNT, percent) if is_amount_eligible(line) else line
        for line in lines
    ]


def summarize(lines: List[CartLine]) -> CartSummary:
    """Aggregate lines. The total is floored at zero; lines are not."""
    total = sum((line.total for line in lines), ZERO)
    return CartSummary(
        subtotal=sum((line.subtotal for line in lines), ZERO),
        discount_amount=sum((line.discount_amount for line in lines), ZERO),
        total=max(total, ZERO),
        line_count=len(lines),
    )
