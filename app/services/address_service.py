"""
Saved shipping addresses.

Owners manage their own addresses; admins may read, edit and delete any of
them but only the owner picks the primary one. A user has at most one
primary address.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.exceptions import ForbiddenError, NotFoundError
from app.models import ShippingAddress

logger = logging.getLogger(__name__)

# Form field -> model attribute
FIELDS = {
    'nombreCompleto': 'recipient_name',
    'telefono': 'phone',
    'calle': 'street',
    'numero': 'number',
    'transversal': 'cross_street',
    'referencia': 'reference',
    'codigoPostal': 'postal_code',
    'departamento': 'department',
    'ciudad': 'city',
    'barrio': 'neighborhood',
    'lat': 'lat',
    'lng': 'lng',
}
# Columns stored as '' rather than NULL when omitted
BLANK_DEFAULTS = {'number', 'reference', 'postal_code'}


def _check_owner(address: ShippingAddress, user, allow_admin: bool = True) -> None:
    if address.user_id == user.id:
        return
    if allow_admin and user.is_admin:
        return
    raise ForbiddenError('No tienes permiso para acceder a esta dirección')


def _clear_primary(session: Session, user_id: int, keep_id: Optional[int] = None) -> None:
    query = session.query(ShippingAddress).filter(
        ShippingAddress.user_id == user_id,
        ShippingAddress.is_primary.is_(True)
    )
    if keep_id is not None:
        query = query.filter(ShippingAddress.id != keep_id)
    query.update({ShippingAddress.is_primary: False}, synchronize_session='fetch')


def _apply_fields(address: ShippingAddress, data: Dict[str, Any]) -> None:
    for field, attr in FIELDS.items():
        value = data.get(field)
        if value == '' or value is None:
            value = '' if attr in BLANK_DEFAULTS else None
        setattr(address, attr, value)


def list_addresses(session: Session, user_id: int, requester) -> List[ShippingAddress]:
    """Addresses of user_id, primary first then newest."""
    if requester.id != user_id and not requester.is_admin:
        raise ForbiddenError('No tienes permiso para acceder a estas direcciones')
    return session.query(ShippingAddress).filter(
        ShippingAddress.user_id == user_id
    ).order_by(
        ShippingAddress.is_primary.desc(),
        ShippingAddress.created_at.desc(),
        ShippingAddress.id.desc()
    ).all()


def get_address(session: Session, address_id: int, requester) -> ShippingAddress:
    address = session.get(ShippingAddress, address_id)
    if not address:
        raise NotFoundError('Dirección no encontrada')
    _check_owner(address, requester)
    return address


def get_owned_address(session: Session, address_id: int, user_id: Optional[int]) -> ShippingAddress:
    """Address used at checkout: must exist and belong to the buyer."""
    address = session.get(ShippingAddress, address_id) if user_id else None
    if not address or address.user_id != user_id:
        raise NotFoundError('Dirección no encontrada')
    return address


def create_address(session: Session, user, data: Dict[str, Any]) -> ShippingAddress:
    address = ShippingAddress(user_id=user.id, is_primary=bool(data.get('esPrincipal', False)))
    _apply_fields(address, data)
    try:
        if address.is_primary:
            _clear_primary(session, user.id)
        session.add(address)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info(f"[ADDRESS] User {user.id} saved address {address.id}")
    return address


def update_address(session: Session, address_id: int, user, data: Dict[str, Any]) -> ShippingAddress:
    address = get_address(session, address_id, user)
    _apply_fields(address, data)
    try:
        if 'esPrincipal' in data:
            if data['esPrincipal'] and not address.is_primary:
                _clear_primary(session, address.user_id, keep_id=address.id)
            address.is_primary = bool(data['esPrincipal'])
        session.commit()
    except Exception:
        session.rollback()
        raise
    return address


def delete_address(session: Session, address_id: int, user) -> None:
    address = get_address(session, address_id, user)
    session.delete(address)
    session.commit()
    logger.info(f"[ADDRESS] Deleted address {address_id}")


def set_primary(session: Session, address_id: int, user) -> ShippingAddress:
    address = session.get(ShippingAddress, address_id)
    if not address:
        raise NotFoundError('Dirección no encontrada')
    _check_owner(address, user, allow_admin=False)
    try:
        _clear_primary(session, user.id, keep_id=address.id)
        address.is_primary = True
        session.commit()
    except Exception:
        session.rollback()
        raise
    return address
