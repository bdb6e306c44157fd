"""Flask application factory."""
from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFProtect, CSRFError
from werkzeug.exceptions import HTTPException
from app.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # CSRF protection (storefront blueprints are exempted below)
    csrf = CSRFProtect(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning(f"CSRF Error: {e.description}")
        return jsonify({'status': 'error', 'message': 'Token CSRF inválido o ausente'}), 400

    # Sentry error tracking in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
            release=app.config.get('GIT_COMMIT', 'unknown')
        )

    # Redis cache (catalog listings)
    from app.services.cache_service import init_cache
    init_cache(app)

    # Rate limiting (login, checkout)
    from app.services.rate_limit_service import init_rate_limiter
    init_rate_limiter(app)

    # Prometheus metrics instrumentation
    from app.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: trust the reverse proxy headers
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Initialize database
    init_db(app)

    # Caller identity: logged-in user or anonymous cart session
    from app.middleware import load_user_and_session, echo_session_header

    @app.before_request
    def before_request_handler():
        load_user_and_session()

    app.after_request(echo_session_header)

    # Error Handlers
    from app.exceptions import ShopError

    @app.errorhandler(ShopError)
    def handle_shop_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"ShopError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"ShopError [{error.status_code}] {request.method} {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'status': 'error', 'message': error.description or error.name}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({
            'status': 'error',
            'message': 'Error interno del servidor',
            'detalle': str(error),
        }), 500

    # Register blueprints
    from app.blueprints.cart import cart_bp
    from app.blueprints.orders import orders_bp
    from app.blueprints.catalog import catalog_bp
    from app.blueprints.auth import auth_bp
    from app.blueprints.addresses import addresses_bp
    from app.blueprints.admin import admin_bp
    from app.blueprints.metrics import metrics_bp

    # JSON storefront identified by session header, exempt from CSRF
    for blueprint in (cart_bp, orders_bp, catalog_bp, auth_bp, addresses_bp):
        csrf.exempt(blueprint)
        app.register_blueprint(blueprint)

    app.register_blueprint(admin_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from app.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
