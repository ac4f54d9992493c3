"""
Plaque Preview - Flask Application Factory
Renders roster plaque preview images from a chosen plaque and card selection
"""

import os
from pathlib import Path
from flask import Flask
from loguru import logger
from dotenv import load_dotenv

from .config import load_config, set_config


def create_app(overrides=None, store=None, loader=None):
    """
    Flask application factory

    `overrides` is a dict applied on top of file and environment settings;
    `store` and `loader` replace the default preview store and image loader.
    """

    # Load environment variables
    load_dotenv()

    app = Flask(__name__)

    # Load configuration
    environment = os.getenv('FLASK_ENV', 'development')
    config = load_config(environment, overrides)
    set_config(config)
    app.config.update(config.model_dump())

    # Configure logging
    setup_logging(app)

    # Ensure output directories exist
    setup_directories(app)

    # Wire the render pipeline
    from .service import create_preview_service
    from .storage import FilesystemPreviewStore

    if store is None:
        store = FilesystemPreviewStore(app.config['PREVIEW_FOLDER'])
    service = create_preview_service(config, store)
    if loader is not None:
        service.loader = loader
    app.extensions['preview_service'] = service

    # Register blueprints
    from . import routes
    app.register_blueprint(routes.bp)

    logger.info(f"Plaque Preview initialized in {config.FLASK_ENV} mode")

    return app


def setup_logging(app):
    """Configure loguru logging"""
    log_level = app.config.get('LOG_LEVEL', 'INFO')
    log_file = app.config.get('LOG_FILE', 'logs/app.log')

    # Ensure logs directory exists
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_file,
        rotation="1 day",
        retention="30 days",
        level=log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )


def setup_directories(app):
    """Ensure required directories exist"""
    dirs = [
        app.config.get('PREVIEW_FOLDER', 'previews'),
        os.path.join(app.config.get('ASSETS_DIR', 'assets'), 'backgrounds'),
    ]

    for dir_path in dirs:
        Path(dir_path).mkdir(parents=True, exist_ok=True)
