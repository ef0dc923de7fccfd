"""
Persistence models. Importing this package registers every table with SQLAlchemy.
"""

from asset_lifecycle.data.core.business_unit import BusinessUnit
from asset_lifecycle.data.core.employee import Employee
from asset_lifecycle.data.core.asset_category import AssetCategory
from asset_lifecycle.data.core.asset import Asset
from asset_lifecycle.data.depreciation.depreciation_entry import DepreciationEntry
from asset_lifecycle.data.deployments.deployment_record import DeploymentRecord
from asset_lifecycle.data.transfers.transfer_record import TransferRecord
from asset_lifecycle.data.disposals.disposal_record import DisposalRecord
from asset_lifecycle.data.disposals.retirement_record import RetirementRecord
from asset_lifecycle.data.core.asset_history import AssetHistory

__all__ = [
    'BusinessUnit',
    'Employee',
    'AssetCategory',
    'Asset',
    'DepreciationEntry',
    'DeploymentRecord',
    'TransferRecord',
    'DisposalRecord',
    'RetirementRecord',
    'AssetHistory',
]
