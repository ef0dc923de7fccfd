"""
Base state machine for workflow records

Workflow records (deployments, transfers) only move forward; the subclasses
declare their statuses and transition tables.
"""

from typing import Dict, Set

from asset_lifecycle.data.core.enums import enum_value
from asset_lifecycle.buisness.core.errors import PreconditionError


class RecordStateMachine:
    """
    Base state machine for a workflow record's ``status``.

    Unlike asset status, record status is not reversible and staying in the
    same state is never a valid transition.
    """

    LABEL = 'record'
    RULE = 'record_status_transition'

    TERMINAL_STATES: Set = set()
    TRANSITIONS: Dict = {}

    @classmethod
    def can_transition(cls, from_status, to_status) -> bool:
        if from_status in cls.TERMINAL_STATES:
            return False
        return to_status in cls.TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(cls, from_status, to_status) -> None:
        """
        Raises:
            PreconditionError: If transition is not allowed
        """
        if not cls.can_transition(from_status, to_status):
            if from_status in cls.TERMINAL_STATES:
                message = f"{cls.LABEL} is already {enum_value(from_status)}"
            else:
                message = f"Invalid {cls.LABEL} transition: {enum_value(from_status)} → {enum_value(to_status)}"
            raise PreconditionError(message, rule=cls.RULE)

    @classmethod
    def get_allowed_transitions(cls, from_status) -> Set:
        """Get set of allowed target statuses from current status"""
        if from_status in cls.TERMINAL_STATES:
            return set()
        return set(cls.TRANSITIONS.get(from_status, set()))
