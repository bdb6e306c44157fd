"""
Discount Service - lookups of currently active discounts plus admin CRUD.

Active means: active flag set and date_from <= today <= date_to.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.exceptions import BusinessLogicError, NotFoundError
from app.models import Discount, DiscountType, Variant

logger = logging.getLogger(__name__)


def _current(query, today: date):
    return query.filter(
        Discount.active.is_(True),
        Discount.date_from <= today,
        Discount.date_to >= today,
    )


def get_active_product_discounts(
    session: Session,
    variant_ids: Iterable[Optional[int]],
    today: Optional[date] = None
) -> Dict[int, Discount]:
    """
    Active PRODUCTO discounts keyed by variant_id.

    When several rows match one variant the dict keeps the last one read.
    Rows are read by ascending value then id, so the survivor is the highest
    percent (newest row on equal percent).
    """
    ids = sorted({vid for vid in variant_ids if vid is not None})
    if not ids:
        return {}

    today = today or date.today()
    rows = _current(session.query(Discount), today).filter(
        Discount.kind == DiscountType.PRODUCT.value,
        Discount.variant_id.in_(ids),
    ).order_by(Discount.value.asc(), Discount.id.asc()).all()

    return {row.variant_id: row for row in rows}


def get_active_amount_tier_discount(
    session: Session,
    eligible_subtotal: Decimal,
    today: Optional[date] = None
) -> Optional[Discount]:
    """
    Best IMPORTE tier whose [amount_from, amount_to] contains the subtotal.

    Highest percent wins. Returns None when no tier matches.
    """
    today = today or date.today()
    return _current(session.query(Discount), today).filter(
        Discount.kind == DiscountType.AMOUNT.value,
        Discount.amount_from <= eligible_subtotal,
        Discount.amount_to >= eligible_subtotal,
    ).order_by(Discount.value.desc(), Discount.id.desc()).first()


# =====================================================
# ADMIN CRUD
# =====================================================

def list_discounts(session: Session, kind: Optional[str] = None) -> List[Discount]:
    query = session.query(Discount)
    if kind:
        query = query.filter(Discount.kind == kind)
    return query.order_by(Discount.kind, Discount.date_from.desc(), Discount.id).all()


def get_discount(session: Session, discount_id: int) -> Discount:
    discount = session.get(Discount, discount_id)
    if not discount:
        raise NotFoundError('Descuento no encontrado')
    return discount


def _apply_fields(session: Session, discount: Discount, data: dict) -> None:
    """Copy validated form data onto a discount and check cross-field rules."""
    discount.kind = data['tipo']
    discount.value = data['valor']
    discount.description = data.get('descripcion') or None
    discount.active = bool(data.get('activo', True))
    discount.date_from = data['fechaDesde']
    discount.date_to = data['fechaHasta']

    if discount.date_from > discount.date_to:
        raise BusinessLogicError('fechaDesde no puede ser posterior a fechaHasta')

    if discount.kind == DiscountType.PRODUCT.value:
        variant_id = data.get('varianteId')
        if not variant_id:
            raise BusinessLogicError('varianteId es requerido para descuentos por producto')
        if not session.get(Variant, variant_id):
            raise NotFoundError('Variante no encontrada')
        discount.variant_id = variant_id
        discount.amount_from = None
        discount.amount_to = None
    else:
        amount_from = data.get('cantDesde')
        amount_to = data.get('cantHasta')
        if amount_from is None or amount_to is None:
            raise BusinessLogicError('cantDesde y cantHasta son requeridos para descuentos por importe')
        if amount_from < 0 or amount_from > amount_to:
            raise BusinessLogicError('El rango de importe es inválido')
        discount.amount_from = amount_from
        discount.amount_to = amount_to
        discount.variant_id = None


def create_discount(session: Session, data: dict) -> Discount:
    discount = Discount()
    try:
        _apply_fields(session, discount, data)
        session.add(discount)
        session.commit()
    except Exception:
        session.rollback()
        raise
    _invalidate_catalog_cache()
    logger.info(f"[DISCOUNT] Created {discount.kind} discount {discount.id} ({discount.value}%)")
    return discount


def update_discount(session: Session, discount_id: int, data: dict) -> Discount:
    discount = get_discount(session, discount_id)
    try:
        _apply_fields(session, discount, data)
        session.commit()
    except Exception:
        session.rollback()
        raise
    _invalidate_catalog_cache()
    logger.info(f"[DISCOUNT] Updated discount {discount.id}")
    return discount


def delete_discount(session: Session, discount_id: int) -> None:
    discount = get_discount(session, discount_id)
    session.delete(discount)
    session.commit()
    _invalidate_catalog_cache()
    logger.info(f"[DISCOUNT] Deleted discount {discount_id}")


def _invalidate_catalog_cache():
    """Catalog listings embed the current product discount."""
    from app.services.catalog_service import invalidate_catalog_cache
    invalidate_catalog_cache()
