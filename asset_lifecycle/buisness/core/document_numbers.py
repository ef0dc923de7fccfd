#!/usr/bin/env python3
"""
Document Number Generators
Human-readable sequential identifiers for workflow records (TN-2025-0001, TR-2025-0001)
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional


class DocumentNumberGenerator(ABC):
    """
    Abstract base class for per-year document sequences.

    The next number is derived from the highest number already issued for the
    year inside the caller's transaction. Two concurrent callers can derive the
    same number; the unique constraint on the column turns the loser's commit
    into a DuplicateRecordError, and the request facades retry once with a
    fresh number.
    """

    PREFIX: str = ''

    @classmethod
    @abstractmethod
    def get_column(cls):
        """Return the model column holding the document number"""
        pass

    @classmethod
    def format_number(cls, year: int, sequence: int) -> str:
        return f"{cls.PREFIX}-{year}-{sequence:04d}"

    @classmethod
    def next_number(cls, session, today: Optional[date] = None) -> str:
        year = (today or date.today()).year
        prefix = f"{cls.PREFIX}-{year}-"
        column = cls.get_column()

        highest = 0
        for (number,) in session.query(column).filter(column.like(f"{prefix}%")):
            try:
                highest = max(highest, int(number[len(prefix):]))
            except ValueError:
                continue
        return cls.format_number(year, highest + 1)


class TransmittalNumberGenerator(DocumentNumberGenerator):
    """Deployment transmittal numbers: TN-<year>-NNNN"""

    PREFIX = 'TN'

    @classmethod
    def get_column(cls):
        from asset_lifecycle.data.deployments.deployment_record import DeploymentRecord
        return DeploymentRecord.transmittal_number


class TransferNumberGenerator(DocumentNumberGenerator):
    """Transfer numbers: TR-<year>-NNNN"""

    PREFIX = 'TR'

    @classmethod
    def get_column(cls):
        from asset_lifecycle.data.transfers.transfer_record import TransferRecord
        return TransferRecord.transfer_number
