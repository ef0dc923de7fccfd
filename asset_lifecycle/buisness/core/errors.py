"""
Domain exceptions for asset lifecycle business logic

These exceptions represent business rule violations and domain-specific errors.
They are raised by the business layer before any state is committed; the unit of
work rolls back and the presentation layer renders them as explicit results.
"""

from typing import Dict, Optional


class LifecycleDomainError(Exception):
    """Base exception for all asset lifecycle domain errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            'type': self.__class__.__name__,
            'message': self.message,
        }


class ValidationError(LifecycleDomainError):
    """Raised for malformed input (negative price, zero useful life, missing reason)"""

    def __init__(self, field_errors: Dict[str, str], message: Optional[str] = None):
        self.field_errors = dict(field_errors)
        if message is None:
            message = "Invalid input: " + "; ".join(
                f"{field}: {error}" for field, error in self.field_errors.items()
            )
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['fields'] = self.field_errors
        return data


class ConflictError(LifecycleDomainError):
    """Raised when an active workflow record already exists or a concurrent transition won"""
    pass


class DuplicateRecordError(ConflictError):
    """Raised when a commit collides with a row already holding a unique value"""
    pass


class PreconditionError(LifecycleDomainError):
    """Raised when the current status does not allow the requested transition"""

    def __init__(self, message: str, rule: str):
        super().__init__(message)
        self.rule = rule

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['rule'] = self.rule
        return data


class CalculationError(LifecycleDomainError):
    """Raised when depreciation cannot be computed for an asset (e.g. missing usage count)"""

    def __init__(self, message: str, asset_id: Optional[int] = None):
        super().__init__(message)
        self.asset_id = asset_id


class RecordNotFoundError(LifecycleDomainError):
    """Raised when an asset or workflow record does not exist"""
    pass


class ImmutableRecordError(LifecycleDomainError):
    """Raised when code tries to update or delete an append-only ledger/history row"""
    pass


def require_reason(reason: Optional[str], field: str = 'reason') -> str:
    """Return the stripped reason or raise ValidationError when it is blank."""
    if reason is None or not str(reason).strip():
        raise ValidationError({field: 'A reason is required'})
    return str(reason).strip()


def require_actor(actor_id) -> int:
    """Every transition is attributed to an explicit actor."""
    if actor_id is None or isinstance(actor_id, bool):
        raise ValidationError({'actor_id': 'An actor is required'})
    try:
        return int(actor_id)
    except (TypeError, ValueError):
        raise ValidationError({'actor_id': 'Actor must be an integer id'})
