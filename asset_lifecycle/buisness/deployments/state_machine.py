"""
State machine for deployment records

PENDING_ACCOUNTING_APPROVAL → APPROVED → DEPLOYED → RETURNED, with rejection
and cancellation before the asset leaves.
"""

from typing import Dict, Set

from asset_lifecycle.data.core.enums import DeploymentStatus
from asset_lifecycle.buisness.core.state_machine import RecordStateMachine


class DeploymentStateMachine(RecordStateMachine):

    LABEL = 'Deployment'
    RULE = 'deployment_status_transition'

    PENDING = DeploymentStatus.PENDING_ACCOUNTING_APPROVAL
    APPROVED = DeploymentStatus.APPROVED
    DEPLOYED = DeploymentStatus.DEPLOYED
    RETURNED = DeploymentStatus.RETURNED
    REJECTED = DeploymentStatus.REJECTED
    CANCELLED = DeploymentStatus.CANCELLED

    TERMINAL_STATES = {RETURNED, REJECTED, CANCELLED}

    TRANSITIONS: Dict[DeploymentStatus, Set[DeploymentStatus]] = {
        PENDING: {APPROVED, REJECTED, CANCELLED},
        APPROVED: {DEPLOYED, CANCELLED},
        DEPLOYED: {RETURNED},  # a deployed asset comes back through a return, never a cancel
    }
