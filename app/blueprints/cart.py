"""Cart blueprint - priced cart of the current user or anonymous session."""
from flask import Blueprint, current_app, g, jsonify

from app.blueprints.metrics import cart_pricing_total
from app.database import get_session
from app.forms.base import validate_json
from app.forms.cart_forms import CartAddForm, CartQuantityForm
from app.services import cart_service

cart_bp = Blueprint('cart', __name__, url_prefix='/api/carrito')


def _current_cart(create=True):
    return cart_service.resolve_cart(
        get_session(),
        user_id=g.get('user_id'),
        session_id=g.get('session_id'),
        create=create
    )


def _priced_response(cart, message=None):
    db_session = get_session()
    priced = cart_service.get_priced_cart(db_session, cart)
    cart_pricing_total.labels(amount_tier='yes' if priced.amount_tier_id else 'no').inc()
    body = priced.to_dict()
    if message:
        body['mensaje'] = message
    return jsonify(body)


@cart_bp.route('', methods=['GET'])
def get_cart():
    """Current cart priced from scratch: product discounts, then amount tier."""
    cart = _current_cart()
    get_session().commit()
    return _priced_response(cart)


@cart_bp.route('/recalcular', methods=['POST'])
def recalculate():
    cart = _current_cart()
    get_session().commit()
    return _priced_response(cart)


@cart_bp.route('/agregar', methods=['POST'])
def add_item():
    data = validate_json(CartAddForm)
    db_session = get_session()

    cart = _current_cart()
    cart_service.add_item(db_session, cart, data['varianteId'], data.get('cantidad') or 1)
    db_session.commit()

    current_app.logger.info(f"Cart {cart.id}: added variant {data['varianteId']}")
    return _priced_response(cart, 'Producto agregado al carrito')


@cart_bp.route('/item/<int:item_id>', methods=['PUT'])
def update_item(item_id):
    data = validate_json(CartQuantityForm)
    db_session = get_session()

    cart = _current_cart()
    cart_service.update_item_quantity(db_session, cart, item_id, data['cantidad'])
    db_session.commit()
    return _priced_response(cart, 'Cantidad actualizada')


@cart_bp.route('/item/<int:item_id>', methods=['DELETE'])
def remove_item(item_id):
    db_session = get_session()

    cart = _current_cart()
    cart_service.remove_item(db_session, cart, item_id)
    db_session.commit()
    return _priced_response(cart, 'Producto eliminado del carrito')


@cart_bp.route('/vaciar', methods=['POST'])
def clear():
    db_session = get_session()

    cart = _current_cart(create=False)
    cart_service.clear_cart(db_session, cart)
    db_session.commit()
    return jsonify({'mensaje': 'Carrito vaciado'})
