"""
Flask application factory module.

Creates and configures the task-manager Flask application using the
factory pattern so that development, testing and production setups can be
injected at runtime.

Key Concepts Demonstrated:
- Application factory pattern (create_app)
- Flask extension initialisation (SQLAlchemy)
- Services built from explicit settings and registered on ``app.extensions``
- Blueprint-based route registration
"""

from __future__ import annotations

import atexit
import logging
import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy

from config import get_config, load_jwt_secret

# Shared SQLAlchemy instance -- initialised with a concrete app inside create_app()
db = SQLAlchemy()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     If None, uses FLASK_ENV environment variable.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__, instance_relative_config=True)

    config_class = get_config(config_name)
    app.config.from_object(config_class)
    app.config["JWT_SECRET_KEY"] = load_jwt_secret(testing=bool(app.config.get("TESTING")))

    logger.info("Creating app with config: %s", config_class.__name__)

    # Ensure the instance directory exists for the SQLite database file
    os.makedirs(app.instance_path, exist_ok=True)

    db.init_app(app)

    # Import inside the factory to avoid circular imports -- these modules
    # reference ``db`` from this package, which must exist first.
    from .auth import AuthService, AuthSettings
    from .errors import register_error_handlers
    from .notifications import MailSettings, Notifier
    from .routes.health import health_bp
    from .routes.tasks import tasks_bp
    from .routes.users import users_bp

    notifier = Notifier(MailSettings.from_mapping(app.config))
    app.extensions["notifier"] = notifier
    atexit.register(notifier.shutdown)
    app.extensions["auth"] = AuthService(AuthSettings.from_mapping(app.config), notifier)

    register_error_handlers(app)
    app.register_blueprint(health_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(tasks_bp)

    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

    return app
