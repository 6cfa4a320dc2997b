"""Value objects for lot matching."""

from dataclasses import dataclass, field
import datetime
from decimal import Decimal


@dataclass(frozen=True)
class LotCandidate:
    """Snapshot of an open buy lot, as the matcher sees it."""

    lot_id: int
    remaining_quantity: Decimal
    unit_price: Decimal
    date: datetime.date


@dataclass(frozen=True)
class Allocation:
    """Amount a sell takes from one lot."""

    lot_id: int
    quantity: Decimal
    unit_price: Decimal

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass
class MatchResult:
    """Matcher output for one sell."""

    requested: Decimal
    allocations: list[Allocation] = field(default_factory=list)
    cost_basis: Decimal = Decimal("0")
    unallocated: Decimal = Decimal("0")

    @property
    def allocated(self) -> Decimal:
        return self.requested - self.unallocated

    @property
    def is_covered(self) -> bool:
        return self.unallocated == 0

    @property
    def lot_ids(self) -> list[int]:
        return [allocation.lot_id for allocation in self.allocations]


@dataclass
class TransactionIntent:
    """Normalized add command."""

    profile: str
    kind: str
    metal: str
    quantity: Decimal
    unit_price: Decimal
    date: datetime.date
    notes: str | None = None


@dataclass
class TransactionChanges:
    """Normalized edit command.

    ``None`` means leave unchanged; ``notes=""`` clears the notes.
    """

    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    date: datetime.date | None = None
    notes: str | None = None

    def is_empty(self) -> bool:
        return all(
            value is None for value in (self.quantity, self.unit_price, self.date, self.notes)
        )


@dataclass
class LedgerFilter:
    """Read filter for ``list_ledger``."""

    profile: str
    metal: str | None = None
    kind: str | None = None
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
