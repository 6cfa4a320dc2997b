"""Value objects for ledger summaries and reports."""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass
class MetalSummary:
    """Totals for one metal of a profile."""

    metal: str
    total_buy_quantity: Decimal = Decimal("0")
    total_buy_value: Decimal = Decimal("0")
    total_sell_quantity: Decimal = Decimal("0")
    total_sell_value: Decimal = Decimal("0")
    average_buy_rate: Decimal = Decimal("0")
    average_sell_rate: Decimal = Decimal("0")
    realized_profit: Decimal = Decimal("0")

    # Current stock (ledger-wide, not period bound)
    current_stock: Decimal = Decimal("0")
    stock_value: Decimal = Decimal("0")  # Remaining quantity at lot cost
    open_short_quantity: Decimal = Decimal("0")


@dataclass
class ProfileSummary:
    """Per-metal summaries plus combined totals."""

    profile: str
    metals: list[MetalSummary]
    total_buy_value: Decimal
    total_sell_value: Decimal
    realized_profit: Decimal


@dataclass
class PeriodBucket:
    """Activity within one month or ISO week."""

    period: str  # 'YYYY-MM' or 'YYYY-Www'
    metals: list[MetalSummary]
    realized_profit: Decimal


@dataclass
class AuditIssue:
    """One broken ledger invariant."""

    transaction_id: int
    rule: str
    expected: Decimal
    actual: Decimal


@dataclass
class AuditReport:
    profile: str
    metal: str
    issues: list[AuditIssue] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.issues
