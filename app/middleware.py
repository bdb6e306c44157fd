"""Middleware for caller identity: logged-in user or anonymous cart session."""
import secrets
import time
from functools import wraps

from flask import current_app, g, request, session

from app.database import get_session
from app.exceptions import ForbiddenError, UnauthorizedError
from app.models import AppUser


def generate_session_id() -> str:
    """session_<epoch-ms>_<32 hex chars>"""
    return f"session_{int(time.time() * 1000)}_{secrets.token_hex(16)}"


def load_user_and_session():
    """
    Load current user and anonymous session id into g.

    Called before each request. Sets g.user when the Flask session holds an
    active user_id; otherwise g.session_id comes from the session header or a
    freshly generated id.
    """
    g.user = None
    g.user_id = None
    g.session_id = None

    user_id = session.get('user_id')
    if user_id:
        user = get_session().query(AppUser).filter_by(id=user_id, active=True).first()
        if user:
            g.user = user
            g.user_id = user.id
        else:
            # Account removed or deactivated since login
            session.pop('user_id', None)

    header = current_app.config.get('SESSION_HEADER', 'x-session-id')
    g.session_id = request.headers.get(header) or None
    if g.user is None and not g.session_id:
        g.session_id = generate_session_id()


def echo_session_header(response):
    """Return the anonymous session id so clients can keep their cart."""
    session_id = g.get('session_id')
    if session_id:
        response.headers[current_app.config.get('SESSION_HEADER', 'x-session-id')] = session_id
    return response


def require_login(f):
    """
    Decorator: Require a logged-in user.

    Raises UnauthorizedError (rendered as JSON 401) when nobody is logged in.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise UnauthorizedError()
        return f(*args, **kwargs)
    return decorated_function


def require_admin(f):
    """
    Decorator: Require a logged-in user with the admin role.

    Must be used on JSON endpoints only; errors are rendered by the app's
    ShopError handler.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = g.get('user')
        if user is None:
            raise UnauthorizedError()
        if not user.is_admin:
            current_app.logger.warning(f"User {user.id} denied access to {request.path}")
            raise ForbiddenError()
        return f(*args, **kwargs)
    return decorated_function
