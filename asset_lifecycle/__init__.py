from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
import os
from asset_lifecycle.utils.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()


def create_app(config_overrides=None):
    """
    Application factory.

    Configuration is read from the environment (``.env`` is loaded by the run
    script) and may be overridden with a mapping, which is how the tests point
    the app at a throwaway database.
    """
    from pathlib import Path

    app = Flask(__name__)

    logger = get_logger("asset_lifecycle")
    logger.info("Initializing Flask application")

    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')
    if not app.config['SECRET_KEY']:
        logger.warning("SECRET_KEY not set in environment; using a development-only key")
        app.config['SECRET_KEY'] = 'dev-only-secret'

    # Prefer an explicit DATABASE_URL; otherwise keep the SQLite file in instance/
    db_env = os.environ.get('DATABASE_URL')
    if db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        base_dir = Path(__file__).parent.parent
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'asset_lifecycle.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Actor attributed to scheduled depreciation runs started without one
    app.config['DEPRECIATION_DEFAULT_ACTOR_ID'] = int(os.environ.get('DEPRECIATION_DEFAULT_ACTOR_ID', '0'))
    app.config['DEPRECIATION_USE_RECORDED_UNITS'] = os.environ.get(
        'DEPRECIATION_USE_RECORDED_UNITS', 'False'
    ).lower() in ('true', '1', 'yes', 'on')

    if config_overrides:
        app.config.update(config_overrides)

    logger.debug("Database configured: %s", app.config['SQLALCHEMY_DATABASE_URI'].split(':', 1)[0])

    db.init_app(app)
    migrate.init_app(app, db)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from asset_lifecycle import data  # noqa: F401

    logger.debug("Models imported and registered")

    from asset_lifecycle.presentation.routes import init_app as init_routes
    init_routes(app)

    from asset_lifecycle.cli import init_app as init_cli
    init_cli(app)

    logger.info("Flask application initialization complete")

    return app
