"""
LifecycleNarrator - Note composer for asset history entries

Ensures every transition produces a consistent machine-generated note.
Separates audit narrative formatting from transition logic.
"""

from typing import Optional

from asset_lifecycle.data.core.enums import enum_value
from asset_lifecycle.utils.money import format_money


class LifecycleNarrator:
    """
    Composes machine-generated notes for asset lifecycle events.

    All methods return the text stored in AssetHistory.notes.
    """

    @staticmethod
    def asset_registered(asset) -> str:
        return (
            f"Asset {asset.item_code} registered at {format_money(asset.purchase_price)} "
            f"({enum_value(asset.depreciation_method)}, salvage {format_money(asset.salvage_value)})"
        )

    @staticmethod
    def status_changed(from_status, to_status, reason: Optional[str] = None) -> str:
        """Note for direct status changes"""
        note = f"Status changed: {enum_value(from_status)} → {enum_value(to_status)}"
        if reason:
            note += f" | Reason: {reason}"
        return note

    @staticmethod
    def deployment_requested(record, employee) -> str:
        note = f"Deployment {record.transmittal_number} requested for {employee.full_name}"
        if record.expected_return_date:
            note += f" | Expected return: {record.expected_return_date.isoformat()}"
        return note

    @staticmethod
    def deployment_approved(record) -> str:
        return (
            f"Deployment {record.transmittal_number} approved by accounting; "
            f"deployed on {record.deployed_date.isoformat()}"
        )

    @staticmethod
    def deployment_rejected(record, reason: str) -> str:
        return f"Deployment {record.transmittal_number} rejected | Reason: {reason}"

    @staticmethod
    def deployment_cancelled(record, reason: Optional[str]) -> str:
        note = f"Deployment {record.transmittal_number} cancelled"
        if reason:
            note += f" | Reason: {reason}"
        return note

    @staticmethod
    def deployment_returned(record) -> str:
        return (
            f"Asset returned from deployment {record.transmittal_number} "
            f"| Condition: {record.return_condition}"
        )

    @staticmethod
    def transfer_requested(record) -> str:
        return (
            f"Transfer {record.transfer_number} requested: business unit "
            f"{record.from_business_unit_id} → {record.to_business_unit_id}"
        )

    @staticmethod
    def transfer_status_changed(record, from_status, to_status, reason: Optional[str] = None) -> str:
        note = f"Transfer {record.transfer_number}: {enum_value(from_status)} → {enum_value(to_status)}"
        if reason:
            note += f" | Reason: {reason}"
        return note

    @staticmethod
    def transfer_completed(record) -> str:
        note = (
            f"Transfer {record.transfer_number} received; owner {record.from_business_unit_id} → "
            f"{record.to_business_unit_id}"
        )
        if record.to_location:
            note += f", location {record.from_location or 'N/A'} → {record.to_location}"
        return note

    @staticmethod
    def asset_disposed(record) -> str:
        return (
            f"Asset disposed ({enum_value(record.reason)}) at book value "
            f"{format_money(record.book_value_at_disposal)} | Gain/loss: {format_money(record.gain_loss)}"
        )

    @staticmethod
    def disposal_approved(record) -> str:
        return f"Disposal of asset {record.asset_id} approved"

    @staticmethod
    def asset_retired(reason: str) -> str:
        return f"Asset retired from service | Reason: {reason}"

    @staticmethod
    def depreciation_posted(calculation, period_date) -> str:
        note = (
            f"Depreciation for period ending {period_date.isoformat()}: "
            f"{format_money(calculation.amount)} "
            f"(book value {format_money(calculation.book_value_start)} → {format_money(calculation.book_value_end)})"
        )
        if calculation.fully_depreciated:
            note += " | Fully depreciated"
        return note

    @staticmethod
    def units_recorded(units: int, total: int) -> str:
        return f"Recorded {units} units of usage (total {total})"
