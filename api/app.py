"""
Flask Application Factory.

Creates the app, wires the account services into app.extensions and
registers the blueprints and error handlers.
"""

import logging

from dotenv import load_dotenv
from flask import Flask, jsonify

load_dotenv()

logger = logging.getLogger(__name__)


def create_app(config=None, services=None):
    """Create and configure the Flask application.

    Args:
        config: Optional dict of config overrides (e.g. {'TESTING': True}).
        services: Optional accounts.Services; built from settings if omitted.

    Returns:
        Configured Flask app instance.
    """
    app = Flask(__name__)

    if config:
        app.config.update(config)

    from config.settings import get_settings
    settings = get_settings()

    # Configure logging
    from api.logging_config import configure_logging
    configure_logging(app, settings)

    # Register custom error handlers for APIError hierarchy
    from core.errors import register_error_handlers
    register_error_handlers(app)

    if services is None:
        from accounts import create_services
        services = create_services(settings)
    app.extensions["accounts"] = services

    _register_blueprints(app)

    logger.info("App created with %s", type(services.repository).__name__)
    return app


def _register_blueprints(app):
    """Register all route blueprints."""
    from api.routes.auth_routes import auth_bp
    app.register_blueprint(auth_bp)

    from api.routes.admin_routes import admin_bp
    app.register_blueprint(admin_bp)

    @app.route('/health')
    def health():
        return jsonify({"status": "ok"})
