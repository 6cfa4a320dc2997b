"""SQLAlchemy ORM models."""

from bullion.models.ledger_partition import LedgerPartition
from bullion.models.lot_draw import LotDraw
from bullion.models.transaction import MetalTransaction

__all__ = [
    "LedgerPartition",
    "LotDraw",
    "MetalTransaction",
]
