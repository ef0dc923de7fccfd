"""
Error handlers rendering domain errors as JSON results
"""

from flask import jsonify

from asset_lifecycle.buisness.core.errors import (
    CalculationError,
    ConflictError,
    ImmutableRecordError,
    LifecycleDomainError,
    PreconditionError,
    RecordNotFoundError,
    ValidationError,
)
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.routes.errors")

# Most specific first; LifecycleDomainError is the fallback
STATUS_CODES = (
    (ValidationError, 400),
    (RecordNotFoundError, 404),
    (ConflictError, 409),
    (PreconditionError, 422),
    (CalculationError, 422),
    (ImmutableRecordError, 422),
)


def status_for(exc: LifecycleDomainError) -> int:
    for error_type, status in STATUS_CODES:
        if isinstance(exc, error_type):
            return status
    return 400


def error_response(exc: LifecycleDomainError):
    return jsonify({'success': False, 'error': exc.to_dict()}), status_for(exc)


def register_error_handlers(app):
    @app.errorhandler(LifecycleDomainError)
    def handle_domain_error(exc):
        status = status_for(exc)
        logger.warning(f"{type(exc).__name__} ({status}): {exc.message}")
        return error_response(exc)
