"""
Closed value sets for statuses, methods and reasons.

Members subclass ``str`` so they compare equal to their stored values and
serialize to JSON without conversion.
"""

from enum import Enum


class AssetStatus(str, Enum):
    AVAILABLE = 'AVAILABLE'
    DEPLOYED = 'DEPLOYED'
    IN_MAINTENANCE = 'IN_MAINTENANCE'
    RETIRED = 'RETIRED'
    LOST = 'LOST'
    DAMAGED = 'DAMAGED'
    DISPOSED = 'DISPOSED'
    # Legacy status value; full depreciation is tracked by Asset.is_fully_depreciated
    FULLY_DEPRECIATED = 'FULLY_DEPRECIATED'


class DepreciationMethod(str, Enum):
    STRAIGHT_LINE = 'STRAIGHT_LINE'
    DECLINING_BALANCE = 'DECLINING_BALANCE'
    UNITS_OF_PRODUCTION = 'UNITS_OF_PRODUCTION'
    SUM_OF_YEARS_DIGITS = 'SUM_OF_YEARS_DIGITS'


class DeploymentStatus(str, Enum):
    PENDING_ACCOUNTING_APPROVAL = 'PENDING_ACCOUNTING_APPROVAL'
    APPROVED = 'APPROVED'
    DEPLOYED = 'DEPLOYED'
    RETURNED = 'RETURNED'
    REJECTED = 'REJECTED'
    CANCELLED = 'CANCELLED'


class TransferStatus(str, Enum):
    PENDING_APPROVAL = 'PENDING_APPROVAL'
    APPROVED = 'APPROVED'
    IN_TRANSIT = 'IN_TRANSIT'
    COMPLETED = 'COMPLETED'
    REJECTED = 'REJECTED'
    CANCELLED = 'CANCELLED'


class DisposalReason(str, Enum):
    SOLD = 'SOLD'
    DONATED = 'DONATED'
    SCRAPPED = 'SCRAPPED'
    LOST = 'LOST'
    STOLEN = 'STOLEN'
    TRANSFERRED = 'TRANSFERRED'
    END_OF_LIFE = 'END_OF_LIFE'
    DAMAGED_BEYOND_REPAIR = 'DAMAGED_BEYOND_REPAIR'
    OBSOLETE = 'OBSOLETE'
    REGULATORY_COMPLIANCE = 'REGULATORY_COMPLIANCE'


class HistoryAction(str, Enum):
    REGISTERED = 'REGISTERED'
    STATUS_CHANGED = 'STATUS_CHANGED'
    DEPLOYMENT_REQUESTED = 'DEPLOYMENT_REQUESTED'
    DEPLOYED = 'DEPLOYED'
    DEPLOYMENT_REJECTED = 'DEPLOYMENT_REJECTED'
    DEPLOYMENT_CANCELLED = 'DEPLOYMENT_CANCELLED'
    RETURNED = 'RETURNED'
    TRANSFER_REQUESTED = 'TRANSFER_REQUESTED'
    TRANSFER_APPROVED = 'TRANSFER_APPROVED'
    TRANSFER_REJECTED = 'TRANSFER_REJECTED'
    TRANSFER_CANCELLED = 'TRANSFER_CANCELLED'
    TRANSFER_DISPATCHED = 'TRANSFER_DISPATCHED'
    TRANSFERRED = 'TRANSFERRED'
    DISPOSED = 'DISPOSED'
    DISPOSAL_APPROVED = 'DISPOSAL_APPROVED'
    RETIRED = 'RETIRED'
    DEPRECIATION_CALCULATED = 'DEPRECIATION_CALCULATED'
    UNITS_RECORDED = 'UNITS_RECORDED'


# Non-terminal workflow states; at most one record per asset may sit in these
ACTIVE_DEPLOYMENT_STATUSES = frozenset({
    DeploymentStatus.PENDING_ACCOUNTING_APPROVAL,
    DeploymentStatus.APPROVED,
    DeploymentStatus.DEPLOYED,
})

ACTIVE_TRANSFER_STATUSES = frozenset({
    TransferStatus.PENDING_APPROVAL,
    TransferStatus.APPROVED,
    TransferStatus.IN_TRANSIT,
})

# Statuses the scheduler never posts for
NON_DEPRECIATING_STATUSES = frozenset({
    AssetStatus.DISPOSED,
    AssetStatus.RETIRED,
})


def enum_column_type(enum_cls, db):
    """String-backed enum column shared by every model."""
    return db.Enum(enum_cls, native_enum=False, length=40, validate_strings=True)


def enum_value(value):
    """Plain string for an enum member (or passthrough), for JSON payloads."""
    return value.value if isinstance(value, Enum) else value
