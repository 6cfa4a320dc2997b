"""Input checks shared by add and edit paths.

Quantities and prices must fit their columns exactly. A value that the
database would round makes stored draws, remaining quantities and profit
disagree with each other after commit.
"""

from decimal import Decimal

from bullion.constants import PRICE_DECIMALS, QUANTITY_DECIMALS
from bullion.services.ledger.errors import InvalidTransactionError


def decimal_places(value: Decimal) -> int:
    """Significant digits after the decimal point (trailing zeros ignored)."""
    exponent = value.normalize().as_tuple().exponent
    return max(0, -exponent)


def require_positive(name: str, value: Decimal | None, places: int) -> None:
    """Reject non-positive or over-precise values; ``None`` passes."""
    if value is None:
        return
    if not value.is_finite() or value <= 0:
        raise InvalidTransactionError(f"{name} must be positive, got {value}")
    if decimal_places(value) > places:
        raise InvalidTransactionError(
            f"{name} allows at most {places} decimal places, got {value}"
        )


def require_quantity(value: Decimal | None) -> None:
    require_positive("quantity", value, QUANTITY_DECIMALS)


def require_unit_price(value: Decimal | None) -> None:
    require_positive("unit_price", value, PRICE_DECIMALS)
