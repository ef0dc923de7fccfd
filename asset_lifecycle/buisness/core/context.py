"""
AggregateContext - shared plumbing for the asset aggregate facades

Every lifecycle facade (asset, deployment, transfer, disposal) runs each
operation in its own unit of work, reloads the asset under lock and stamps it
with the acting user so its optimistic version moves with every transition.
"""

from typing import Callable, Optional, TypeVar

from asset_lifecycle.buisness.core.errors import DuplicateRecordError, RecordNotFoundError, require_actor
from asset_lifecycle.buisness.core.unit_of_work import UnitOfWork
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.context")

T = TypeVar("T")

# Attempts for operations that allocate a per-year document number
DOCUMENT_NUMBER_ATTEMPTS = 2


class AggregateContext:

    def __init__(self, uow_factory: Optional[Callable[[], UnitOfWork]] = None):
        self.uow_factory = uow_factory or UnitOfWork

    @staticmethod
    def load_asset(uow: UnitOfWork, asset_id: int, lock: bool = True):
        """
        Load the asset row, ``SELECT ... FOR UPDATE`` where the backend supports it.

        Raises:
            RecordNotFoundError: if no such asset exists
        """
        from asset_lifecycle.data.core.asset import Asset

        query = uow.session.query(Asset).filter(Asset.id == asset_id)
        if lock:
            query = query.with_for_update().populate_existing()
        asset = query.one_or_none()
        if asset is None:
            raise RecordNotFoundError(f"Asset {asset_id} not found")
        return asset

    @staticmethod
    def load_record(uow: UnitOfWork, model, record_id: int, label: str):
        record = uow.session.get(model, record_id, populate_existing=True)
        if record is None:
            raise RecordNotFoundError(f"{label} {record_id} not found")
        return record

    @staticmethod
    def actor(actor_id) -> int:
        return require_actor(actor_id)

    @staticmethod
    def retry_on_duplicate(operation: Callable[[], T], attempts: int = DOCUMENT_NUMBER_ATTEMPTS) -> T:
        """
        Run ``operation`` again when its commit collided on a unique value.

        Document numbers are shared by every asset, so a request for one asset
        can lose its number to a request for another. Each attempt reloads the
        asset, so a clash on the same asset still ends in the active workflow
        ConflictError.

        Raises:
            DuplicateRecordError: every attempt collided
        """
        for attempt in range(1, attempts + 1):
            try:
                return operation()
            except DuplicateRecordError:
                if attempt == attempts:
                    raise
                logger.warning(f"Unique value taken by a concurrent request, retrying (attempt {attempt + 1})")
