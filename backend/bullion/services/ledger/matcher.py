"""Lot matcher - decides which buy lots a sell consumes.

Pure functions over an explicit snapshot of open lots. Nothing here reads or
writes the database.
"""

from collections.abc import Callable, Iterable
from decimal import Decimal

from bullion.constants import MatchingPolicy, ShortfallMode
from bullion.services.ledger.errors import InsufficientInventoryError
from bullion.services.ledger.types import Allocation, LotCandidate, MatchResult

_SORT_KEYS: dict[MatchingPolicy, Callable[[LotCandidate], tuple]] = {
    MatchingPolicy.CHEAPEST_FIRST: lambda lot: (lot.unit_price, lot.date, lot.lot_id),
    MatchingPolicy.FIFO: lambda lot: (lot.date, lot.lot_id),
}


def order_candidates(
    candidates: Iterable[LotCandidate], policy: MatchingPolicy
) -> list[LotCandidate]:
    """Sort open lots in the order the policy consumes them."""
    return sorted(candidates, key=_SORT_KEYS[MatchingPolicy(policy)])


def available_quantity(candidates: Iterable[LotCandidate]) -> Decimal:
    """Total stock left across lots."""
    return sum(
        (lot.remaining_quantity for lot in candidates if lot.remaining_quantity > 0),
        Decimal("0"),
    )


def match_sell(
    quantity: Decimal,
    candidates: Iterable[LotCandidate],
    policy: MatchingPolicy = MatchingPolicy.CHEAPEST_FIRST,
) -> MatchResult:
    """Greedily allocate a sell quantity across open lots.

    Each lot in policy order gives ``min(remaining, still_needed)``. Whatever
    the lots cannot cover is reported as ``unallocated``; deciding whether
    that is acceptable is ``ensure_covered``'s job.
    """
    if quantity <= 0:
        raise ValueError(f"Sell quantity must be positive, got {quantity}")

    result = MatchResult(requested=quantity)
    still_needed = quantity

    for lot in order_candidates(candidates, policy):
        if still_needed <= 0:
            break
        if lot.remaining_quantity <= 0:
            continue

        drawn = min(lot.remaining_quantity, still_needed)
        allocation = Allocation(lot_id=lot.lot_id, quantity=drawn, unit_price=lot.unit_price)
        result.allocations.append(allocation)
        result.cost_basis += allocation.cost
        still_needed -= drawn

    result.unallocated = still_needed
    return result


def ensure_covered(result: MatchResult, mode: ShortfallMode, metal: str) -> MatchResult:
    """Reject an under-covered match in strict mode; pass it through otherwise."""
    if not result.is_covered and ShortfallMode(mode) == ShortfallMode.STRICT:
        raise InsufficientInventoryError(metal, result.requested, result.allocated)
    return result
