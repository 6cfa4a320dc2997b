"""Reconciler - keeps lots consistent when history is edited or deleted.

Every method validates first and only then writes, so rejected edits never
touch the ledger. Partial failures after validation are undone by the
caller's unit of work.
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from bullion.constants import MatchingPolicy, ShortfallMode
from bullion.models import MetalTransaction
from bullion.services.ledger.errors import (
    InsufficientInventoryError,
    LotInUseError,
    NegativeRemainingError,
)
from bullion.services.ledger.matcher import available_quantity, ensure_covered, match_sell
from bullion.services.ledger.mutator import LotMutator
from bullion.services.ledger.types import LotCandidate, MatchResult, TransactionChanges
from bullion.services.ledger.validation import require_quantity, require_unit_price
from bullion.services.repositories import TransactionRepository

logger = logging.getLogger(__name__)


class Reconciler:
    """Matches, re-matches and unwinds sells against a partition's lots."""

    def __init__(
        self,
        db: Session,
        *,
        policy: MatchingPolicy = MatchingPolicy.CHEAPEST_FIRST,
        shortfall_mode: ShortfallMode = ShortfallMode.STRICT,
        repo: TransactionRepository | None = None,
        mutator: LotMutator | None = None,
    ) -> None:
        self._db = db
        self._policy = policy
        self._shortfall_mode = shortfall_mode
        self._repo = repo or TransactionRepository(db)
        self._mutator = mutator or LotMutator(db)

    @property
    def mutator(self) -> LotMutator:
        return self._mutator

    def open_lots(self, profile: str, metal: str) -> list[LotCandidate]:
        """Snapshot the partition's open lots for the matcher."""
        return [
            LotCandidate(
                lot_id=lot.id,
                remaining_quantity=lot.remaining_quantity,
                unit_price=lot.unit_price,
                date=lot.date,
            )
            for lot in self._repo.find_open_lots(profile, metal)
        ]

    def plan_sell(self, profile: str, metal: str, quantity: Decimal) -> MatchResult:
        """Match a sell quantity against current lots, enforcing the shortfall mode."""
        result = match_sell(quantity, self.open_lots(profile, metal), self._policy)
        if not result.is_covered:
            logger.warning(
                f"{profile}/{metal} sell of {quantity} is short by {result.unallocated} "
                f"(mode={self._shortfall_mode.value})"
            )
        return ensure_covered(result, self._shortfall_mode, metal)

    def allocate_sell(self, sell: MetalTransaction) -> MetalTransaction:
        """Match a sell against the pool and apply the result."""
        result = self.plan_sell(sell.profile, sell.metal, sell.quantity)
        return self._mutator.apply(sell, result)

    # Buys

    def edit_buy(self, lot: MetalTransaction, changes: TransactionChanges) -> MetalTransaction:
        """Edit a lot while preserving the amount already sold from it.

        ``remaining = new_quantity - (old_quantity - old_remaining)``. A new
        unit price flows into the cost basis of every sell that drew from it;
        those sells keep their allocations.
        """
        require_quantity(changes.quantity)
        require_unit_price(changes.unit_price)

        if changes.quantity is not None and changes.quantity != lot.quantity:
            committed = lot.quantity - lot.remaining_quantity
            if changes.quantity < committed:
                logger.warning(f"Rejected edit of lot {lot.id}: {committed} already sold")
                raise NegativeRemainingError(lot.id, committed, changes.quantity)
            lot.remaining_quantity = changes.quantity - committed
            lot.quantity = changes.quantity

        if changes.date is not None:
            lot.date = changes.date
        if changes.notes is not None:
            lot.notes = changes.notes or None  # "" clears

        if changes.unit_price is not None and changes.unit_price != lot.unit_price:
            lot.unit_price = changes.unit_price
            self._reprice_dependents(lot)

        self._db.flush()
        return lot

    def _reprice_dependents(self, lot: MetalTransaction) -> None:
        touched: dict[int, MetalTransaction] = {}
        for draw in self._repo.find_draws_against_lot(lot.id):
            draw.unit_cost = lot.unit_price
            touched[draw.sell_id] = draw.sell
        for sell in touched.values():
            LotMutator.refresh_profit(sell)
        if touched:
            logger.info(f"Lot {lot.id} repriced; recomputed profit of sells {sorted(touched)}")

    def delete_buy(self, lot: MetalTransaction) -> None:
        """Delete a lot that no sell draws from."""
        sell_ids = self._repo.find_dependent_sell_ids(lot.id)
        if sell_ids:
            logger.warning(f"Rejected delete of lot {lot.id}: sells {sell_ids} draw from it")
            raise LotInUseError(lot.id, sell_ids)
        self._repo.delete(lot)

    # Sells

    def edit_sell(self, sell: MetalTransaction, changes: TransactionChanges) -> MetalTransaction:
        """Edit a sell, re-matching it when its quantity changes.

        A new quantity is validated against the open lots plus what the sell
        itself holds, then the old draws are reversed and the sell is matched
        afresh. Price, date and note edits keep the draws and only recompute
        profit, so re-submitting identical values changes nothing.
        """
        require_quantity(changes.quantity)
        require_unit_price(changes.unit_price)

        rematch = changes.quantity is not None and changes.quantity != sell.quantity
        if rematch:
            self._validate_resize(sell, changes.quantity)

        if changes.unit_price is not None:
            sell.unit_price = changes.unit_price
        if changes.date is not None:
            sell.date = changes.date
        if changes.notes is not None:
            sell.notes = changes.notes or None

        if rematch:
            self._mutator.reverse(sell)
            sell.quantity = changes.quantity
            self.allocate_sell(sell)
        else:
            LotMutator.refresh_profit(sell)
            self._db.flush()
        return sell

    def _validate_resize(self, sell: MetalTransaction, quantity: Decimal) -> None:
        if self._shortfall_mode != ShortfallMode.STRICT:
            return
        held = sum((draw.quantity for draw in sell.draws), Decimal("0"))
        available = available_quantity(self.open_lots(sell.profile, sell.metal)) + held
        if quantity > available:
            raise InsufficientInventoryError(sell.metal, quantity, available)

    def delete_sell(self, sell: MetalTransaction) -> None:
        """Give a sell's stock back to its lots and delete it."""
        self._mutator.reverse(sell)
        self._repo.delete(sell)
