"""Lot-accounting engine.

Matches sells to buy lots, keeps every lot's remaining quantity consistent
across edits and deletions, and reports on the resulting ledger.
"""

from .errors import (
    ConcurrentModificationError,
    InsufficientInventoryError,
    InvalidTransactionError,
    LedgerConsistencyError,
    LedgerError,
    LotInUseError,
    LotNotFoundError,
    NegativeRemainingError,
    OverDrawError,
)
from .matcher import available_quantity, ensure_covered, match_sell, order_candidates
from .mutator import LotMutator
from .reconciler import Reconciler
from .reports import LedgerReportService
from .service import LedgerService
from .types import (
    Allocation,
    LedgerFilter,
    LotCandidate,
    MatchResult,
    TransactionChanges,
    TransactionIntent,
)

__all__ = [
    "Allocation",
    "ConcurrentModificationError",
    "InsufficientInventoryError",
    "InvalidTransactionError",
    "LedgerConsistencyError",
    "LedgerError",
    "LedgerFilter",
    "LedgerReportService",
    "LedgerService",
    "LotCandidate",
    "LotInUseError",
    "LotMutator",
    "LotNotFoundError",
    "MatchResult",
    "NegativeRemainingError",
    "OverDrawError",
    "Reconciler",
    "TransactionChanges",
    "TransactionIntent",
    "available_quantity",
    "ensure_covered",
    "match_sell",
    "order_candidates",
]
