"""
Authentication service for storefront accounts.

Handles registration and credential checks; the session cookie itself is
managed by the auth blueprint.
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from app.exceptions import BusinessLogicError, UnauthorizedError
from app.models import AppUser, UserRole

logger = logging.getLogger(__name__)


def register_user(session: Session, email: str, password: str, full_name: str = None,
                  phone: str = None, role: str = UserRole.CUSTOMER) -> AppUser:
    """
    Create a new account.

    Raises:
        BusinessLogicError: if the email is already registered
    """
    email = email.strip().lower()
    if session.query(AppUser.id).filter_by(email=email).first():
        raise BusinessLogicError('El email ya está registrado')

    user = AppUser(email=email, full_name=full_name, phone=phone, role=role, active=True)
    user.set_password(password)
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise BusinessLogicError('El email ya está registrado')

    logger.info(f"New {role} account registered: {email}")
    return user


def authenticate(session: Session, email: str, password: str) -> AppUser:
    """
    Return the active user for these credentials.

    Raises:
        UnauthorizedError: on unknown email, wrong password or inactive user
    """
    user = session.query(AppUser).filter_by(email=email.strip().lower()).first()
    if not user or not user.check_password(password):
        logger.warning(f"Failed login attempt for {email}")
        raise UnauthorizedError('Credenciales inválidas')
    if not user.active:
        logger.warning(f"Login attempt for inactive user {email}")
        raise UnauthorizedError('Usuario no válido')
    return user
