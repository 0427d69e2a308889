"""Sunrise Alarm Flask Application Factory."""

import os
from flask import Flask


def create_app(coordinator=None, config=None):
    """
    Create and configure the Flask application.

    Args:
        coordinator: AlarmRetimingCoordinator to expose. When None, the
            service's default coordinator is built (scheduler not started).
        config: Flask config overrides
    """
    app = Flask(__name__)

    # Default configuration
    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-key-change-in-production")
    app.config["JSON_SORT_KEYS"] = False

    # Override with custom config if provided
    if config:
        app.config.update(config)

    if coordinator is None:
        from sunrise.main import build_services
        coordinator, _ = build_services()
    app.extensions["coordinator"] = coordinator

    # Register blueprints
    from app.routes import main_bp
    app.register_blueprint(main_bp)

    return app
