"""Addresses blueprint - a customer's saved shipping addresses."""
from flask import Blueprint, g, jsonify

from app.database import get_session
from app.forms.address_forms import AddressForm
from app.forms.base import validate_json
from app.middleware import require_login
from app.services import address_service

addresses_bp = Blueprint('addresses', __name__, url_prefix='/api/direcciones')


@addresses_bp.before_request
@require_login
def check_login():
    """Every address route requires a logged-in user."""


@addresses_bp.route('', methods=['GET'])
def list_own_addresses():
    return list_user_addresses(g.user.id)


@addresses_bp.route('/usuario/<int:user_id>', methods=['GET'])
def list_user_addresses(user_id):
    addresses = address_service.list_addresses(get_session(), user_id, g.user)
    return jsonify({'total': len(addresses), 'direcciones': [a.to_dict() for a in addresses]})


@addresses_bp.route('/<int:address_id>', methods=['GET'])
def get_address(address_id):
    return jsonify({'direccion': address_service.get_address(get_session(), address_id, g.user).to_dict()})


@addresses_bp.route('', methods=['POST'])
def create_address():
    data = validate_json(AddressForm)
    address = address_service.create_address(get_session(), g.user, data)
    return jsonify({'mensaje': 'Dirección creada exitosamente', 'direccion': address.to_dict()}), 201


@addresses_bp.route('/<int:address_id>', methods=['PUT'])
def update_address(address_id):
    data = validate_json(AddressForm)
    address = address_service.update_address(get_session(), address_id, g.user, data)
    return jsonify({'mensaje': 'Dirección actualizada exitosamente', 'direccion': address.to_dict()})


@addresses_bp.route('/<int:address_id>', methods=['DELETE'])
def delete_address(address_id):
    address_service.delete_address(get_session(), address_id, g.user)
    return jsonify({'mensaje': 'Dirección eliminada exitosamente'})


@addresses_bp.route('/<int:address_id>/principal', methods=['PUT'])
def set_primary(address_id):
    address = address_service.set_primary(get_session(), address_id, g.user)
    return jsonify({'mensaje': 'Dirección marcada como principal', 'direccion': address.to_dict()})
