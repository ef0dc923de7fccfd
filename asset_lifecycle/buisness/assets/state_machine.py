"""
State machine for asset status

Encodes valid transitions and the narrower set allowed for direct admin edits.
Keeps "what is allowed" separate from "how persistence occurs".
"""

from typing import Dict, Set

from asset_lifecycle.data.core.enums import AssetStatus, enum_value
from asset_lifecycle.buisness.core.errors import PreconditionError


class AssetStatusMachine:
    """
    State machine for Asset.status transitions.

    The workflows drive most transitions (deployment, transfer, disposal,
    retirement). FULLY_DEPRECIATED is only a legacy status value: full
    depreciation is the orthogonal ``is_fully_depreciated`` flag and the
    scheduler never writes it into ``status``.
    """

    AVAILABLE = AssetStatus.AVAILABLE
    DEPLOYED = AssetStatus.DEPLOYED
    IN_MAINTENANCE = AssetStatus.IN_MAINTENANCE
    RETIRED = AssetStatus.RETIRED
    LOST = AssetStatus.LOST
    DAMAGED = AssetStatus.DAMAGED
    DISPOSED = AssetStatus.DISPOSED
    FULLY_DEPRECIATED = AssetStatus.FULLY_DEPRECIATED

    # Terminal states (cannot transition from these)
    TERMINAL_STATES = {DISPOSED}

    # Valid transitions: from_status -> set of allowed to_status values
    TRANSITIONS: Dict[AssetStatus, Set[AssetStatus]] = {
        AVAILABLE: {DEPLOYED, IN_MAINTENANCE, LOST, DAMAGED, RETIRED, DISPOSED},
        DEPLOYED: {AVAILABLE, IN_MAINTENANCE, LOST, DAMAGED},  # AVAILABLE only through a return
        IN_MAINTENANCE: {AVAILABLE, DEPLOYED, DAMAGED, RETIRED, DISPOSED},
        LOST: {AVAILABLE, DEPLOYED, RETIRED, DISPOSED},
        DAMAGED: {AVAILABLE, DEPLOYED, IN_MAINTENANCE, RETIRED, DISPOSED},
        RETIRED: {DISPOSED},
        FULLY_DEPRECIATED: {AVAILABLE, RETIRED, DISPOSED},
        # DISPOSED is terminal
    }

    # Direct admin edits
    OVERRIDE_SOURCES = {AVAILABLE, DEPLOYED}
    OVERRIDE_TARGETS = {IN_MAINTENANCE, LOST, DAMAGED}

    # Statuses return_to_service brings back into use
    OUT_OF_SERVICE_STATES = {IN_MAINTENANCE, LOST, DAMAGED}

    @classmethod
    def can_transition(cls, from_status, to_status) -> bool:
        from_status = AssetStatus(from_status)
        to_status = AssetStatus(to_status)

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
            if AssetStatus(from_status) in cls.TERMINAL_STATES:
                raise PreconditionError(
                    f"Asset is {enum_value(from_status)}; no transition leaves a terminal status",
                    rule='terminal_status',
                )
            raise PreconditionError(
                f"Invalid asset status transition: {enum_value(from_status)} → {enum_value(to_status)}",
                rule='asset_status_transition',
            )

    @classmethod
    def validate_override(cls, from_status, to_status) -> None:
        """
        Direct status edits are allowed only from AVAILABLE or DEPLOYED, only into
        IN_MAINTENANCE, LOST or DAMAGED, and never out of DISPOSED.

        Raises:
            PreconditionError: If the edit is not allowed
        """
        from_status = AssetStatus(from_status)
        to_status = AssetStatus(to_status)

        if from_status in cls.TERMINAL_STATES:
            raise PreconditionError(
                f"Asset is {from_status.value}; its status can no longer be edited",
                rule='terminal_status',
            )
        if from_status not in cls.OVERRIDE_SOURCES:
            raise PreconditionError(
                f"Status overrides are only allowed from AVAILABLE or DEPLOYED (asset is {from_status.value})",
                rule='override_source',
            )
        if to_status not in cls.OVERRIDE_TARGETS:
            raise PreconditionError(
                f"Status can only be overridden to IN_MAINTENANCE, LOST or DAMAGED (got {to_status.value})",
                rule='override_target',
            )
        cls.validate_transition(from_status, to_status)

    @classmethod
    def get_allowed_transitions(cls, from_status) -> Set[AssetStatus]:
        """Get set of allowed target statuses from current status"""
        from_status = AssetStatus(from_status)
        if from_status in cls.TERMINAL_STATES:
            return set()
        return set(cls.TRANSITIONS.get(from_status, set()))
