"""Application constants to avoid magic strings."""

from decimal import Decimal
from enum import Enum


class TransactionKind:
    """Transaction kind constants."""

    BUY = "Buy"
    SELL = "Sell"

    ALL = (BUY, SELL)


class Metal:
    """Metal constants. Each metal is its own ledger partition."""

    GOLD = "Gold"
    SILVER = "Silver"

    ALL = (GOLD, SILVER)


class MatchingPolicy(str, Enum):
    """Order in which open lots are consumed by a sell."""

    CHEAPEST_FIRST = "cheapest_first"  # ascending unit price, then date
    FIFO = "fifo"  # oldest date first


class ShortfallMode(str, Enum):
    """What happens when open lots cannot cover a sell."""

    STRICT = "strict"  # reject the sell
    PERMISSIVE = "permissive"  # record the covered part, leave the rest as an open short


# Storage precision of the Numeric columns
QUANTITY_DECIMALS = 8
PRICE_DECIMALS = 4
PROFIT_QUANTUM = Decimal("0.0001")
