"""Lot mutator - applies and reverses matcher allocations."""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from bullion.constants import PROFIT_QUANTUM
from bullion.models import LotDraw, MetalTransaction
from bullion.services.ledger.errors import (
    LedgerConsistencyError,
    LotNotFoundError,
    OverDrawError,
)
from bullion.services.ledger.types import MatchResult

logger = logging.getLogger(__name__)


class LotMutator:
    """Writes lot decrements and sell provenance.

    ``apply`` is all-or-nothing per sell: the decrements run inside a
    SAVEPOINT, so a missing lot or an overdraw halfway through leaves none
    of that sell's decrements behind.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def _load_lot(self, lot_id: int) -> MetalTransaction:
        lot = self._db.get(MetalTransaction, lot_id)
        if lot is None or not lot.is_buy:
            raise LotNotFoundError(lot_id)
        return lot

    def apply(self, sell: MetalTransaction, result: MatchResult) -> MetalTransaction:
        """Decrement matched lots and record the sell's draws in match order."""
        with self._db.begin_nested():
            for sequence, allocation in enumerate(result.allocations):
                lot = self._load_lot(allocation.lot_id)
                if lot.metal != sell.metal or lot.profile != sell.profile:
                    raise LotNotFoundError(allocation.lot_id)
                if allocation.quantity > lot.remaining_quantity:
                    logger.error(
                        f"Overdraw on lot {lot.id}: allocation {allocation.quantity} "
                        f"exceeds remaining {lot.remaining_quantity} (sell {sell.id})"
                    )
                    raise OverDrawError(lot.id, allocation.quantity, lot.remaining_quantity)

                lot.remaining_quantity -= allocation.quantity
                sell.draws.append(
                    LotDraw(
                        lot_id=lot.id,
                        sequence=sequence,
                        quantity=allocation.quantity,
                        unit_cost=lot.unit_price,
                    )
                )

            sell.unallocated_quantity = result.unallocated
            self.refresh_profit(sell)
            self._db.flush()

        logger.debug(
            f"Sell {sell.id} drew from lots {result.lot_ids}, "
            f"cost basis {result.cost_basis}, unallocated {result.unallocated}"
        )
        return sell

    def reverse(self, sell: MetalTransaction) -> MetalTransaction:
        """Give every drawn amount back to its lot and drop the sell's draws."""
        for draw in list(sell.draws):
            lot = self._load_lot(draw.lot_id)
            restored = lot.remaining_quantity + draw.quantity
            if restored > lot.quantity:
                raise LedgerConsistencyError(
                    f"Reversing sell {sell.id} would leave lot {lot.id} with "
                    f"{restored} remaining out of {lot.quantity}"
                )
            lot.remaining_quantity = restored

        sell.draws.clear()
        sell.unallocated_quantity = sell.quantity
        sell.realized_profit = Decimal("0")
        self._db.flush()
        logger.debug(f"Reversed draws of sell {sell.id}")
        return sell

    @staticmethod
    def refresh_profit(sell: MetalTransaction) -> Decimal:
        """Recompute realized profit from the sell's current draws.

        Only the covered quantity earns profit; an open short in permissive
        mode has no cost basis yet. The result is rounded to the stored
        precision so the committed value equals the one computed here.
        """
        covered = sell.quantity - (sell.unallocated_quantity or Decimal("0"))
        profit = covered * sell.unit_price - sell.cost_basis
        sell.realized_profit = profit.quantize(PROFIT_QUANTUM, rounding=ROUND_HALF_UP)
        return sell.realized_profit
