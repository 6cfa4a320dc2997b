"""Metal transaction data access layer.

Everything the lot-accounting engine needs from storage: point lookup,
bulk query by (profile, metal), open-lot query, insert, partial update and
delete. The repository knows nothing about lot semantics.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session, selectinload

from bullion.constants import TransactionKind
from bullion.models import LotDraw, MetalTransaction
from bullion.services.repositories.exceptions import NotFoundError

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class TransactionRepository:
    """Centralized metal transaction data access.

    Naming conventions:
    - find_* : Query that may return None or empty list
    - get_* : Query that raises NotFoundError if missing
    - create_* : Insert new record
    - update_* : Modify existing record
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def find_by_id(self, transaction_id: int) -> MetalTransaction | None:
        """Find transaction by primary key."""
        return (
            self._db.query(MetalTransaction)
            .options(selectinload(MetalTransaction.draws))
            .filter(MetalTransaction.id == transaction_id)
            .first()
        )

    def get_by_id(self, transaction_id: int) -> MetalTransaction:
        """Get transaction by primary key or raise NotFoundError."""
        transaction = self.find_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    def find_by_scope(
        self,
        profile: str,
        metal: str | None = None,
        *,
        kind: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> "Sequence[MetalTransaction]":
        """Find a profile's transactions, oldest first.

        ``metal``, ``kind`` and the inclusive date bounds are optional filters.
        """
        query = (
            self._db.query(MetalTransaction)
            .options(selectinload(MetalTransaction.draws))
            .filter(MetalTransaction.profile == profile)
        )
        if metal:
            query = query.filter(MetalTransaction.metal == metal)
        if kind:
            query = query.filter(MetalTransaction.kind == kind)
        if start_date:
            query = query.filter(MetalTransaction.date >= start_date)
        if end_date:
            query = query.filter(MetalTransaction.date <= end_date)
        return query.order_by(MetalTransaction.date, MetalTransaction.id).all()

    def find_open_lots(self, profile: str, metal: str) -> "Sequence[MetalTransaction]":
        """Find buy lots of one metal that still have stock left."""
        return (
            self._db.query(MetalTransaction)
            .filter(
                MetalTransaction.profile == profile,
                MetalTransaction.metal == metal,
                MetalTransaction.kind == TransactionKind.BUY,
                MetalTransaction.remaining_quantity > 0,
            )
            .order_by(MetalTransaction.date, MetalTransaction.id)
            .all()
        )

    def find_draws_against_lot(self, lot_id: int) -> "Sequence[LotDraw]":
        """Find every draw that consumed part of a lot."""
        return (
            self._db.query(LotDraw)
            .filter(LotDraw.lot_id == lot_id)
            .order_by(LotDraw.sell_id, LotDraw.sequence)
            .all()
        )

    def find_dependent_sell_ids(self, lot_id: int) -> list[int]:
        """Find ids of sells that currently reference a lot."""
        rows = (
            self._db.query(LotDraw.sell_id)
            .filter(LotDraw.lot_id == lot_id)
            .distinct()
            .order_by(LotDraw.sell_id)
            .all()
        )
        return [row[0] for row in rows]

    def create(
        self,
        *,
        profile: str,
        kind: str,
        metal: str,
        quantity: Decimal,
        unit_price: Decimal,
        date: date,
        notes: str | None = None,
    ) -> MetalTransaction:
        """Insert a new transaction and assign its id."""
        transaction = MetalTransaction(
            profile=profile,
            kind=kind,
            metal=metal,
            quantity=quantity,
            unit_price=unit_price,
            date=date,
            notes=notes,
        )
        if kind == TransactionKind.BUY:
            transaction.remaining_quantity = quantity
        else:
            transaction.realized_profit = Decimal("0")
            transaction.unallocated_quantity = Decimal("0")
        self._db.add(transaction)
        self._db.flush()
        logger.debug(f"Created {kind} {transaction.id} for {profile}/{metal}")
        return transaction

    def update_fields(self, transaction: MetalTransaction, **fields: Any) -> MetalTransaction:
        """Apply a partial field set to a transaction."""
        for name, value in fields.items():
            setattr(transaction, name, value)
        self._db.flush()
        return transaction

    def delete(self, transaction: MetalTransaction) -> None:
        """Delete a transaction (its draws cascade when it is a sell)."""
        self._db.delete(transaction)
        self._db.flush()
