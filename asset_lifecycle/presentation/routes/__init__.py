"""
Routes package for the asset lifecycle API
One blueprint per workflow, all under /api
"""

from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.routes")


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    logger.debug("Initializing route blueprints")

    from . import approvals, assets, depreciation, deployments, disposals, transfers
    from .core.errors import register_error_handlers

    app.register_blueprint(assets.bp, url_prefix='/api/assets')
    app.register_blueprint(depreciation.bp, url_prefix='/api/depreciation')
    app.register_blueprint(deployments.bp, url_prefix='/api/deployments')
    app.register_blueprint(transfers.bp, url_prefix='/api/transfers')
    app.register_blueprint(disposals.bp, url_prefix='/api/disposals')
    app.register_blueprint(approvals.bp, url_prefix='/api/approvals')

    register_error_handlers(app)
    logger.info("Registered API blueprints")
