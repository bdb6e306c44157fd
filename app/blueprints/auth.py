"""Authentication blueprint - session login for customers and admins."""
from flask import Blueprint, current_app, g, jsonify, session
from flask_wtf.csrf import generate_csrf

from app.database import get_session
from app.forms.auth_forms import LoginForm, RegisterForm
from app.forms.base import validate_json
from app.middleware import require_login
from app.services import auth_service, cart_service
from app.services.rate_limit_service import client_identifier, get_rate_limiter, rate_limit

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _start_session(user):
    """Log the user in and move the anonymous cart into the account."""
    anonymous_id = g.get('session_id')
    session.clear()
    session['user_id'] = user.id
    session.permanent = True

    db_session = get_session()
    cart_service.merge_session_cart(db_session, user.id, anonymous_id)
    db_session.commit()

    g.user = user
    g.user_id = user.id


@auth_bp.route('/registro', methods=['POST'])
def register():
    data = validate_json(RegisterForm)
    user = auth_service.register_user(
        get_session(),
        data['email'],
        data['password'],
        full_name=data.get('nombre') or None,
        phone=data.get('telefono') or None,
    )
    _start_session(user)
    return jsonify({'mensaje': 'Cuenta creada', 'usuario': user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
@rate_limit('login', 'RATE_LIMIT_LOGIN')
def login():
    data = validate_json(LoginForm)
    identifier = client_identifier()

    user = auth_service.authenticate(get_session(), data['email'], data['password'])
    _start_session(user)
    get_rate_limiter().reset('login', identifier)

    current_app.logger.info(f"User {user.id} logged in")
    return jsonify({'mensaje': 'Sesión iniciada', 'usuario': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'mensaje': 'Sesión cerrada'})


@auth_bp.route('/me', methods=['GET'])
@require_login
def me():
    return jsonify({'usuario': g.user.to_dict()})


@auth_bp.route('/csrf', methods=['GET'])
def csrf_token():
    """Token for the X-CSRFToken header required by admin writes."""
    return jsonify({'csrfToken': generate_csrf()})
