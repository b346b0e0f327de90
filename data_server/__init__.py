"""
Data server application factory.

The data server is the shared, file-backed user store that every Locust
worker process talks to when the remote user-store backend is selected.
It keeps one JSON file holding a list of user records, re-reads it on
every request and rewrites it in full on every mutation.
"""

import logging

from flask import Flask

from config import get_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the data server application.

    Args:
        config_name: Configuration environment name.
                     If None, uses FLASK_ENV environment variable.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)

    logger.info(f"Creating data server with config: {config_class.__name__}")
    logger.info(f"Data file: {app.config['DATA_FILE']}")

    from data_server.routes.api import api_bp

    app.register_blueprint(api_bp)

    return app
