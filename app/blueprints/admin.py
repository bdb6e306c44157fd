"""
Admin blueprint - discounts, catalog and order management.

All routes require an admin session. Writes are CSRF protected: clients send
the token from GET /api/auth/csrf in the X-CSRFToken header.
"""
from flask import Blueprint, current_app, g, jsonify, request

from app.database import get_session
from app.forms.admin_forms import DiscountForm, OrderStatusForm, ProductForm, VariantForm
from app.forms.base import validate_json
from app.middleware import require_admin
from app.models import DiscountType
from app.services import catalog_service, discount_service, order_service
from app.blueprints.orders import page_args
from app.utils.formatters import money_json

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.before_request
@require_admin
def check_admin():
    """Every admin route requires the admin role."""


def _product_admin_dict(product):
    return {
        'id': product.id,
        'nombre': product.name,
        'slug': product.slug,
        'descripcion': product.description,
        'precio': money_json(product.price),
        'stock': product.stock,
        'imagenUrl': product.image_url,
        'activo': product.active,
        'variantes': [_variant_admin_dict(v) for v in product.variants],
    }


def _variant_admin_dict(variant):
    return {
        'id': variant.id,
        'productoId': variant.product_id,
        'nombre': variant.name,
        'slug': variant.slug,
        'sku': variant.sku,
        'precio': money_json(variant.price),
        'stock': variant.stock,
        'imagenUrl': variant.image_url,
        'bloqueoDescuento': variant.discount_blocked,
        'activo': variant.active,
    }


# =====================================================
# DISCOUNTS
# =====================================================

@admin_bp.route('/descuentos', methods=['GET'])
def list_discounts():
    kind = request.args.get('tipo') or None
    if kind and kind not in {t.value for t in DiscountType}:
        kind = None
    discounts = discount_service.list_discounts(get_session(), kind)
    return jsonify({'descuentos': [d.to_dict() for d in discounts]})


@admin_bp.route('/descuentos/<int:discount_id>', methods=['GET'])
def get_discount(discount_id):
    return jsonify({'descuento': discount_service.get_discount(get_session(), discount_id).to_dict()})


@admin_bp.route('/descuentos', methods=['POST'])
def create_discount():
    data = validate_json(DiscountForm)
    discount = discount_service.create_discount(get_session(), data)
    current_app.logger.info(f"Admin {g.user.id} created discount {discount.id}")
    return jsonify({'mensaje': 'Descuento creado', 'descuento': discount.to_dict()}), 201


@admin_bp.route('/descuentos/<int:discount_id>', methods=['PUT'])
def update_discount(discount_id):
    data = validate_json(DiscountForm)
    discount = discount_service.update_discount(get_session(), discount_id, data)
    return jsonify({'mensaje': 'Descuento actualizado', 'descuento': discount.to_dict()})


@admin_bp.route('/descuentos/<int:discount_id>', methods=['DELETE'])
def delete_discount(discount_id):
    discount_service.delete_discount(get_session(), discount_id)
    current_app.logger.info(f"Admin {g.user.id} deleted discount {discount_id}")
    return jsonify({'mensaje': 'Descuento eliminado'})


# =====================================================
# PRODUCTS & VARIANTS
# =====================================================

@admin_bp.route('/productos', methods=['POST'])
def create_product():
    data = validate_json(ProductForm)
    product = catalog_service.create_product(get_session(), data)
    return jsonify({'mensaje': 'Producto creado', 'producto': _product_admin_dict(product)}), 201


@admin_bp.route('/productos/<int:product_id>', methods=['GET'])
def get_product(product_id):
    product = catalog_service.get_product(get_session(), product_id)
    return jsonify({'producto': _product_admin_dict(product)})


@admin_bp.route('/productos/<int:product_id>', methods=['PUT'])
def update_product(product_id):
    data = validate_json(ProductForm)
    product = catalog_service.update_product(get_session(), product_id, data)
    return jsonify({'mensaje': 'Producto actualizado', 'producto': _product_admin_dict(product)})


@admin_bp.route('/productos/<int:product_id>', methods=['DELETE'])
def deactivate_product(product_id):
    product = catalog_service.deactivate_product(get_session(), product_id)
    return jsonify({'mensaje': 'Producto desactivado', 'producto': _product_admin_dict(product)})


@admin_bp.route('/productos/<int:product_id>/variantes', methods=['POST'])
def create_variant(product_id):
    data = validate_json(VariantForm)
    variant = catalog_service.create_variant(get_session(), product_id, data)
    return jsonify({'mensaje': 'Variante creada', 'variante': _variant_admin_dict(variant)}), 201


@admin_bp.route('/variantes/<int:variant_id>', methods=['PUT'])
def update_variant(variant_id):
    data = validate_json(VariantForm)
    variant = catalog_service.update_variant(get_session(), variant_id, data)
    return jsonify({'mensaje': 'Variante actualizada', 'variante': _variant_admin_dict(variant)})


# =====================================================
# ORDERS
# =====================================================

@admin_bp.route('/pedidos', methods=['GET'])
def list_orders():
    page, limit = page_args(default_limit=20)
    orders, total = order_service.list_orders(
        get_session(), status=request.args.get('estado') or None, page=page, per_page=limit
    )
    return jsonify({
        'pedidos': [o.to_dict(include_items=False) for o in orders],
        'pagination': {
            'total': total,
            'page': page,
            'pages': (total + limit - 1) // limit,
        },
    })


@admin_bp.route('/pedidos/<int:order_id>/estado', methods=['PUT'])
def update_order_status(order_id):
    data = validate_json(OrderStatusForm)
    order = order_service.update_order_status(
        get_session(),
        order_id,
        data['estado'],
        tracking_code=data.get('codigoSeguimiento') or None,
        internal_notes=data.get('notasInternas') or None,
    )
    current_app.logger.info(f"Admin {g.user.id} moved order {order.order_number} to {order.status}")
    return jsonify({'mensaje': 'Estado actualizado', 'pedido': order.to_dict()})
