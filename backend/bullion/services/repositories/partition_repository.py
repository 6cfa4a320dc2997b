"""Ledger partition data access layer."""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bullion.models import LedgerPartition

logger = logging.getLogger(__name__)


class PartitionRepository:
    """Access to the per-(profile, metal) version rows."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def find(self, profile: str, metal: str) -> LedgerPartition | None:
        """Find the partition row for a scope."""
        return (
            self._db.query(LedgerPartition)
            .filter(LedgerPartition.profile == profile, LedgerPartition.metal == metal)
            .first()
        )

    def find_or_create(self, profile: str, metal: str) -> LedgerPartition:
        """Find the partition row or create it at version 1.

        A concurrent creator wins the unique constraint; the loser re-reads
        the row it created.
        """
        existing = self.find(profile, metal)
        if existing:
            return existing

        partition = LedgerPartition(profile=profile, metal=metal)
        try:
            with self._db.begin_nested():
                self._db.add(partition)
                self._db.flush()
        except IntegrityError:
            logger.debug(f"Partition {profile}/{metal} created concurrently, re-reading")
            partition = self.find(profile, metal)
            if partition is None:
                raise
            return partition

        logger.debug(f"Created ledger partition {profile}/{metal}")
        return partition

    def bump(self, partition: LedgerPartition) -> LedgerPartition:
        """Mark the partition as modified so its version increments on flush.

        Raises ``StaleDataError`` at flush time when another writer committed
        first.
        """
        partition.updated_at = datetime.now()
        self._db.flush()
        return partition
