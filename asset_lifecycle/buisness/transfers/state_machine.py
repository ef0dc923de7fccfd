"""
State machine for transfer records
"""

from typing import Dict, Set

from asset_lifecycle.data.core.enums import TransferStatus
from asset_lifecycle.buisness.core.state_machine import RecordStateMachine


class TransferStateMachine(RecordStateMachine):
    """
    PENDING_APPROVAL → APPROVED → IN_TRANSIT → COMPLETED.

    Rejection only from PENDING_APPROVAL; cancellation until dispatch.
    """

    LABEL = 'Transfer'
    RULE = 'transfer_status_transition'

    PENDING = TransferStatus.PENDING_APPROVAL
    APPROVED = TransferStatus.APPROVED
    IN_TRANSIT = TransferStatus.IN_TRANSIT
    COMPLETED = TransferStatus.COMPLETED
    REJECTED = TransferStatus.REJECTED
    CANCELLED = TransferStatus.CANCELLED

    TERMINAL_STATES = {COMPLETED, REJECTED, CANCELLED}

    TRANSITIONS: Dict[TransferStatus, Set[TransferStatus]] = {
        PENDING: {APPROVED, REJECTED, CANCELLED},
        APPROVED: {IN_TRANSIT, CANCELLED},
        IN_TRANSIT: {COMPLETED},
    }
