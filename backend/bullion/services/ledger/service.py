"""Ledger service - the public entry point of the lot-accounting engine.

Each mutation runs as one unit of work:

1. take the in-process lock of its (profile, metal) partition,
2. read the partition version, then the lots,
3. reverse / match / apply through the Reconciler and Lot Mutator,
4. bump the partition version and commit.

Any failure rolls the whole unit back. A ``StaleDataError`` from the version
check, or a write conflict reported by the database itself, means another
process committed to the same partition first; the unit is retried from
step 2.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from bullion.config import Settings
from bullion.config import settings as default_settings
from bullion.constants import Metal, TransactionKind
from bullion.models import MetalTransaction
from bullion.services.ledger.errors import (
    ConcurrentModificationError,
    InvalidTransactionError,
    LedgerConsistencyError,
)
from bullion.services.ledger.locks import PartitionLockRegistry, partition_locks
from bullion.services.ledger.reconciler import Reconciler
from bullion.services.ledger.types import LedgerFilter, TransactionChanges, TransactionIntent
from bullion.services.ledger.validation import require_quantity, require_unit_price
from bullion.services.repositories import PartitionRepository, TransactionRepository

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _is_write_conflict(exc: Exception) -> bool:
    """True when another writer committed to the partition first."""
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, OperationalError):
        # SQLite: stale WAL snapshot or held lock. PostgreSQL: serialization failure.
        return getattr(exc.orig, "pgcode", None) == "40001" or "database is locked" in str(
            exc.orig
        )
    return False


class LedgerService:
    """Add, edit, delete and list metal transactions."""

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        locks: PartitionLockRegistry | None = None,
    ) -> None:
        self._db = db
        self._settings = settings or default_settings
        self._locks = locks or partition_locks
        self._repo = TransactionRepository(db)
        self._partitions = PartitionRepository(db)
        self._reconciler = Reconciler(
            db,
            policy=self._settings.matching_policy,
            shortfall_mode=self._settings.shortfall_mode,
            repo=self._repo,
        )

    # Reads

    def get_transaction(self, transaction_id: int) -> MetalTransaction:
        """Get one transaction or raise NotFoundError."""
        return self._repo.get_by_id(transaction_id)

    def list_ledger(self, ledger_filter: LedgerFilter) -> "Sequence[MetalTransaction]":
        """List a profile's transactions, oldest first."""
        return self._repo.find_by_scope(
            ledger_filter.profile,
            ledger_filter.metal,
            kind=ledger_filter.kind,
            start_date=ledger_filter.start_date,
            end_date=ledger_filter.end_date,
        )

    # Mutations

    def add_transaction(self, intent: TransactionIntent) -> MetalTransaction:
        """Record a buy (a new lot) or a sell (matched against open lots)."""
        self._validate_intent(intent)

        def operation() -> MetalTransaction:
            plan = None
            if intent.kind == TransactionKind.SELL:
                plan = self._reconciler.plan_sell(intent.profile, intent.metal, intent.quantity)

            transaction = self._repo.create(
                profile=intent.profile,
                kind=intent.kind,
                metal=intent.metal,
                quantity=intent.quantity,
                unit_price=intent.unit_price,
                date=intent.date,
                notes=intent.notes,
            )
            if plan is not None:
                self._reconciler.mutator.apply(transaction, plan)
            return transaction

        transaction = self._run_in_partition(intent.profile, intent.metal, operation)
        logger.info(
            f"Added {transaction.kind} {transaction.id} of {transaction.quantity} "
            f"{transaction.metal} for {transaction.profile}"
        )
        return transaction

    def edit_transaction(
        self, transaction_id: int, changes: TransactionChanges
    ) -> MetalTransaction:
        """Edit quantity, unit price, date or notes of a transaction."""
        current = self._repo.get_by_id(transaction_id)
        if changes.is_empty():
            return current

        def operation() -> MetalTransaction:
            transaction = self._repo.get_by_id(transaction_id)
            if transaction.is_buy:
                return self._reconciler.edit_buy(transaction, changes)
            return self._reconciler.edit_sell(transaction, changes)

        transaction = self._run_in_partition(current.profile, current.metal, operation)
        logger.info(f"Edited {transaction.kind} {transaction.id}")
        return transaction

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a transaction; buys only when no sell draws from them."""
        current = self._repo.get_by_id(transaction_id)

        def operation() -> None:
            transaction = self._repo.get_by_id(transaction_id)
            if transaction.is_buy:
                self._reconciler.delete_buy(transaction)
            else:
                self._reconciler.delete_sell(transaction)

        self._run_in_partition(current.profile, current.metal, operation)
        logger.info(f"Deleted {current.kind} {transaction_id}")

    # Unit of work

    def _run_in_partition(self, profile: str, metal: str, operation: Callable[[], T]) -> T:
        attempts = max(1, self._settings.commit_retry_attempts)
        with self._locks.lock_for(profile, metal):
            for attempt in range(1, attempts + 1):
                try:
                    # Earlier commits may have left stale lot state in the identity map
                    self._db.expire_all()
                    partition = self._partitions.find_or_create(profile, metal)
                    result = operation()
                    self._partitions.bump(partition)
                    self._db.commit()
                    return result
                except Exception as e:
                    self._rollback()
                    if not _is_write_conflict(e):
                        raise
                    logger.warning(
                        f"Ledger {profile}/{metal} changed concurrently "
                        f"(attempt {attempt}/{attempts}), retrying"
                    )
        raise ConcurrentModificationError(profile, metal, attempts)

    def _rollback(self) -> None:
        try:
            self._db.rollback()
        except Exception as e:
            logger.critical(f"Rollback of ledger mutation failed: {e}")
            raise LedgerConsistencyError(f"Rollback failed, ledger needs an audit: {e}") from e

    @staticmethod
    def _validate_intent(intent: TransactionIntent) -> None:
        if not intent.profile:
            raise InvalidTransactionError("profile is required")
        if intent.kind not in TransactionKind.ALL:
            raise InvalidTransactionError(f"Unknown transaction kind: {intent.kind}")
        if intent.metal not in Metal.ALL:
            raise InvalidTransactionError(f"Unknown metal: {intent.metal}")
        if intent.quantity is None or intent.unit_price is None:
            raise InvalidTransactionError("quantity and unit_price are required")
        require_quantity(intent.quantity)
        require_unit_price(intent.unit_price)
