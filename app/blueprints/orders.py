"""Orders blueprint - checkout from the current cart and order lookup."""
from decimal import Decimal

from flask import Blueprint, current_app, g, jsonify, request

from app.blueprints.metrics import orders_created_total
from app.database import get_session
from app.forms.base import validate_json
from app.forms.cart_forms import CheckoutForm
from app.middleware import require_login
from app.services import cart_service, order_service
from app.services.rate_limit_service import rate_limit
from app.utils.formatters import to_decimal

orders_bp = Blueprint('orders', __name__, url_prefix='/api/pedidos')


def page_args(default_limit=10, max_limit=100):
    """page/limit query arguments, clamped."""
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    limit = request.args.get('limit', default_limit, type=int) or default_limit
    return page, min(max(limit, 1), max_limit)


@orders_bp.route('', methods=['POST'])
@rate_limit('checkout', 'RATE_LIMIT_CHECKOUT')
def create_order():
    """
    Place an order from the caller's cart.

    Body: {cliente: {nombre, email, telefono, direccion, notas}, metodoPago, costoEnvio, direccionId}

    direccionId (logged-in buyers only) ships to a saved address.
    """
    data = validate_json(CheckoutForm)
    db_session = get_session()

    user_id = g.get('user_id')
    session_id = None if user_id else g.get('session_id')
    cart = cart_service.resolve_cart(db_session, user_id=user_id, session_id=session_id, create=False)

    customer = {
        'nombre': data['nombre'],
        'email': data['email'],
        'telefono': data.get('telefono'),
        'direccion': data.get('direccion'),
        'notas': data.get('notas'),
    }
    order = order_service.place_order(
        db_session,
        cart,
        customer,
        data['metodoPago'],
        shipping_cost=to_decimal(data.get('costoEnvio') or Decimal('0')),
        notes=data.get('notasCliente') or '',
        user_id=user_id,
        session_id=session_id,
        delivery_days=current_app.config.get('ORDER_DELIVERY_DAYS', 3),
        address_id=data.get('direccionId'),
    )
    orders_created_total.labels(payment_method=order.payment_method).inc()

    current_app.logger.info(f"Order {order.order_number} created by {'user ' + str(user_id) if user_id else session_id}")
    return jsonify({'mensaje': 'Pedido creado exitosamente', 'pedido': order.to_dict()}), 201


@orders_bp.route('', methods=['GET'])
@require_login
def list_orders():
    page, limit = page_args()
    orders, total = order_service.list_user_orders(
        get_session(), g.user.id, page=page, per_page=limit, status=request.args.get('estado') or None
    )
    return jsonify({
        'pedidos': [o.to_dict(include_items=False) for o in orders],
        'pagination': {
            'total': total,
            'page': page,
            'pages': (total + limit - 1) // limit,
        },
    })


@orders_bp.route('/<int:order_id>', methods=['GET'])
def get_order(order_id):
    order = order_service.get_order(
        get_session(), order_id, user=g.get('user'), session_id=g.get('session_id')
    )
    return jsonify({'pedido': order.to_dict()})
