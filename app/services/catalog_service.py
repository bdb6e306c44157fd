"""
Catalog service - active products for the storefront plus admin writes.

Listing results are cached in Redis (module 'catalog'); every admin write to
products, variants or discounts invalidates the module.
"""
import logging
import re
import unicodedata
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from app.exceptions import BusinessLogicError, NotFoundError
from app.models import Product, Variant
from app.services import discount_service
from app.services.cache_service import get_cache
from app.services.pricing_service import percent_of
from app.utils.formatters import money_json

logger = logging.getLogger(__name__)

CACHE_MODULE = 'catalog'


def slugify(text: str) -> str:
    normalized = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    return re.sub(r'[^a-z0-9]+', '-', normalized.lower()).strip('-')


def _variant_dict(variant: Variant, discounts: Dict[int, Any]) -> Dict[str, Any]:
    discount = discounts.get(variant.id)
    percent = Decimal(discount.value) if discount is not None else Decimal('0')
    final_price = variant.price - percent_of(variant.price, percent) if percent > 0 else variant.price
    return {
        'id': variant.id,
        'nombre': variant.name,
        'slug': variant.slug,
        'sku': variant.sku,
        'precio': money_json(variant.price),
        'descuento': money_json(percent),
        'precioFinal': money_json(final_price),
        'stock': variant.stock,
        'imagen': variant.image_url or '',
        'bloqueoDescuento': variant.discount_blocked,
    }


def _product_dict(product: Product, discounts: Dict[int, Any]) -> Dict[str, Any]:
    return {
        'id': product.id,
        'nombre': product.name,
        'slug': product.slug,
        'descripcion': product.description,
        'imagen': product.image_url or '',
        'variantes': [_variant_dict(v, discounts) for v in product.active_variants],
    }


def _load_products(session: Session, search: Optional[str], page: int, per_page: int, today: date) -> Dict[str, Any]:
    query = session.query(Product).filter(Product.active.is_(True))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

    total = query.count()
    products = query.options(selectinload(Product.variants)).order_by(Product.name).limit(
        per_page
    ).offset((page - 1) * per_page).all()

    variant_ids = [v.id for p in products for v in p.active_variants]
    discounts = discount_service.get_active_product_discounts(session, variant_ids, today)

    return {
        'productos': [_product_dict(p, discounts) for p in products],
        'pagination': {
            'total': total,
            'page': page,
            'pages': (total + per_page - 1) // per_page,
        },
    }


def list_products(session: Session, search: Optional[str] = None, page: int = 1,
                  per_page: int = 20, today: Optional[date] = None) -> Dict[str, Any]:
    """Active products with active variants and their current discount."""
    today = today or date.today()
    key = f"list:{today.isoformat()}:{search or ''}:{page}:{per_page}"
    return get_cache().memoize(
        CACHE_MODULE, key,
        lambda: _load_products(session, search, page, per_page, today),
        ttl=current_app.config.get('CACHE_CATALOG_TTL', 60)
    )


def get_product_by_slug(session: Session, slug: str, today: Optional[date] = None) -> Dict[str, Any]:
    product = session.query(Product).options(selectinload(Product.variants)).filter(
        Product.slug == slug,
        Product.active.is_(True)
    ).first()
    if not product:
        raise NotFoundError('Producto no encontrado')

    discounts = discount_service.get_active_product_discounts(
        session, [v.id for v in product.active_variants], today
    )
    return _product_dict(product, discounts)


# =====================================================
# ADMIN WRITES
# =====================================================

def _unique_slug(session: Session, model, base: str, exclude_id: Optional[int] = None) -> str:
    slug = base or 'item'
    candidate, n = slug, 2
    while True:
        query = session.query(model.id).filter(model.slug == candidate)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if not query.first():
            return candidate
        candidate = f"{slug}-{n}"
        n += 1


def create_product(session: Session, data: Dict[str, Any]) -> Product:
    product = Product(
        name=data['nombre'],
        slug=_unique_slug(session, Product, slugify(data.get('slug') or data['nombre'])),
        description=data.get('descripcion') or None,
        price=data.get('precio') or Decimal('0'),
        stock=data.get('stock') or 0,
        image_url=data.get('imagenUrl') or None,
        active=data.get('activo', True),
    )
    session.add(product)
    session.commit()
    invalidate_catalog_cache()
    logger.info(f"[CATALOG] Created product {product.id} '{product.name}'")
    return product


def get_product(session: Session, product_id: int) -> Product:
    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError('Producto no encontrado')
    return product


def update_product(session: Session, product_id: int, data: Dict[str, Any]) -> Product:
    product = get_product(session, product_id)
    product.name = data['nombre']
    if data.get('slug'):
        product.slug = _unique_slug(session, Product, slugify(data['slug']), exclude_id=product.id)
    product.description = data.get('descripcion') or None
    if data.get('precio') is not None:
        product.price = data['precio']
    if data.get('stock') is not None:
        product.stock = data['stock']
    product.image_url = data.get('imagenUrl') or product.image_url
    product.active = data.get('activo', product.active)
    session.commit()
    invalidate_catalog_cache()
    return product


def deactivate_product(session: Session, product_id: int) -> Product:
    product = get_product(session, product_id)
    product.active = False
    for variant in product.variants:
        variant.active = False
    session.commit()
    invalidate_catalog_cache()
    logger.info(f"[CATALOG] Deactivated product {product.id}")
    return product


def create_variant(session: Session, product_id: int, data: Dict[str, Any]) -> Variant:
    product = get_product(session, product_id)
    if data.get('precio') is None:
        raise BusinessLogicError('precio es requerido')
    name = data['nombre']
    variant = Variant(
        product_id=product.id,
        name=name,
        slug=_unique_slug(session, Variant, slugify(data.get('slug') or f"{product.slug}-{name}")),
        sku=data.get('sku') or None,
        price=data['precio'],
        stock=data.get('stock') or 0,
        image_url=data.get('imagenUrl') or None,
        discount_blocked=bool(data.get('bloqueoDescuento', False)),
        active=data.get('activo', True),
    )
    session.add(variant)
    session.commit()
    invalidate_catalog_cache()
    logger.info(f"[CATALOG] Created variant {variant.id} for product {product.id}")
    return variant


def update_variant(session: Session, variant_id: int, data: Dict[str, Any]) -> Variant:
    variant = session.get(Variant, variant_id)
    if not variant:
        raise NotFoundError('Variante no encontrada')
    variant.name = data['nombre']
    if data.get('sku'):
        variant.sku = data['sku']
    if data.get('precio') is not None:
        variant.price = data['precio']
    if data.get('stock') is not None:
        variant.stock = data['stock']
    if data.get('imagenUrl'):
        variant.image_url = data['imagenUrl']
    variant.discount_blocked = bool(data.get('bloqueoDescuento', variant.discount_blocked))
    variant.active = data.get('activo', variant.active)
    session.commit()
    invalidate_catalog_cache()
    return variant


def invalidate_catalog_cache() -> None:
    """Gracefully attempt to invalidate the catalog cache."""
    try:
        get_cache().invalidate_module(CACHE_MODULE)
    except RuntimeError as e:
        logger.warning(f"[CATALOG] Cache invalidation skipped: {e}")
