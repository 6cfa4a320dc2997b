"""Lot-accounting exceptions.

Rejections (inventory, shrink-below-committed, lot in use) are raised before
anything is written. Defects and storage failures are raised mid-sequence and
leave the ledger rolled back.
"""

from decimal import Decimal


class LedgerError(Exception):
    """Base exception for ledger operations."""


class InvalidTransactionError(LedgerError):
    """Transaction intent or edit is malformed."""


class InsufficientInventoryError(LedgerError):
    """Open lots cannot cover a sell under strict mode."""

    def __init__(self, metal: str, requested: Decimal, available: Decimal):
        self.metal = metal
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        super().__init__(
            f"Not enough {metal} inventory: requested {requested}, "
            f"available {available}, shortfall {self.shortfall}"
        )


class NegativeRemainingError(LedgerError):
    """Buy edit would shrink a lot below the amount already sold from it."""

    def __init__(self, lot_id: int, committed: Decimal, requested: Decimal):
        self.lot_id = lot_id
        self.committed = committed
        self.requested = requested
        super().__init__(
            f"Lot {lot_id} already has {committed} sold; cannot set quantity to {requested}"
        )


class LotInUseError(LedgerError):
    """Buy lot cannot be deleted while sells draw from it."""

    def __init__(self, lot_id: int, sell_ids: list[int]):
        self.lot_id = lot_id
        self.sell_ids = sell_ids
        super().__init__(f"Lot {lot_id} is referenced by sells {sell_ids}")


class LotNotFoundError(LedgerError):
    """Lot chosen by the matcher no longer exists."""

    def __init__(self, lot_id: int):
        self.lot_id = lot_id
        super().__init__(f"Lot not found: {lot_id}")


class OverDrawError(LedgerError):
    """Allocation asks for more than a lot has left (matcher/mutator disagreement)."""

    def __init__(self, lot_id: int, requested: Decimal, remaining: Decimal):
        self.lot_id = lot_id
        self.requested = requested
        self.remaining = remaining
        super().__init__(f"Lot {lot_id} has {remaining} remaining, cannot draw {requested}")


class ConcurrentModificationError(LedgerError):
    """Another writer kept changing the same partition; retries exhausted."""

    def __init__(self, profile: str, metal: str, attempts: int):
        self.profile = profile
        self.metal = metal
        self.attempts = attempts
        super().__init__(
            f"Ledger {profile}/{metal} changed concurrently; gave up after {attempts} attempts"
        )


class LedgerConsistencyError(LedgerError):
    """Rolling back a failed mutation failed too. The ledger needs an audit."""
