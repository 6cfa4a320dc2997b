"""Read-only ledger queries: summaries, period reports and invariant audits.

Reads go through the repository and never take partition locks; each call
sees one committed state of the ledger.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy.orm import Session

from bullion.constants import PROFIT_QUANTUM, Metal
from bullion.models import MetalTransaction
from bullion.services.ledger.report_types import (
    AuditIssue,
    AuditReport,
    MetalSummary,
    PeriodBucket,
    ProfileSummary,
)
from bullion.services.repositories import TransactionRepository

logger = logging.getLogger(__name__)

PERIOD_MONTH = "month"
PERIOD_WEEK = "week"
PERIODS = (PERIOD_MONTH, PERIOD_WEEK)

ZERO = Decimal("0")


def period_key(day: date, period: str) -> str:
    """Bucket key for a date: ``2024-03`` for months, ``2024-W09`` for ISO weeks."""
    if period == PERIOD_MONTH:
        return f"{day.year:04d}-{day.month:02d}"
    if period == PERIOD_WEEK:
        iso_year, iso_week, _ = day.isocalendar()
        return f"{iso_year:04d}-W{iso_week:02d}"
    raise ValueError(f"Unknown period: {period}")


def _activity(metal: str, transactions: Iterable[MetalTransaction]) -> MetalSummary:
    summary = MetalSummary(metal=metal)
    for tx in transactions:
        if tx.is_buy:
            summary.total_buy_quantity += tx.quantity
            summary.total_buy_value += tx.total_value
        else:
            summary.total_sell_quantity += tx.quantity
            summary.total_sell_value += tx.total_value
            summary.realized_profit += tx.realized_profit or ZERO

    if summary.total_buy_quantity > 0:
        summary.average_buy_rate = summary.total_buy_value / summary.total_buy_quantity
    if summary.total_sell_quantity > 0:
        summary.average_sell_rate = summary.total_sell_value / summary.total_sell_quantity
    return summary


def _with_stock(summary: MetalSummary, transactions: Iterable[MetalTransaction]) -> MetalSummary:
    for tx in transactions:
        if tx.is_buy:
            summary.current_stock += tx.remaining_quantity or ZERO
            summary.stock_value += (tx.remaining_quantity or ZERO) * tx.unit_price
        else:
            summary.open_short_quantity += tx.unallocated_quantity or ZERO
    return summary


class LedgerReportService:
    """Summaries and reports over a profile's ledger."""

    def __init__(self, db: Session) -> None:
        self._db = db
        self._repo = TransactionRepository(db)

    def summarize_metal(self, profile: str, metal: str) -> MetalSummary:
        """Lifetime totals and current stock for one metal."""
        transactions = self._repo.find_by_scope(profile, metal)
        return _with_stock(_activity(metal, transactions), transactions)

    def summarize_profile(self, profile: str) -> ProfileSummary:
        """Every metal's summary plus combined totals."""
        metals = [self.summarize_metal(profile, metal) for metal in Metal.ALL]
        return ProfileSummary(
            profile=profile,
            metals=metals,
            total_buy_value=sum((m.total_buy_value for m in metals), ZERO),
            total_sell_value=sum((m.total_sell_value for m in metals), ZERO),
            realized_profit=sum((m.realized_profit for m in metals), ZERO),
        )

    def period_report(
        self, profile: str, period: str = PERIOD_MONTH, metal: str | None = None
    ) -> list[PeriodBucket]:
        """Group activity by month or ISO week, newest period first.

        Sell profit is booked in the period of the sell.
        """
        if period not in PERIODS:
            raise ValueError(f"Unknown period: {period}")

        grouped: dict[str, dict[str, list[MetalTransaction]]] = defaultdict(
            lambda: defaultdict(list)
        )
        for tx in self._repo.find_by_scope(profile, metal):
            grouped[period_key(tx.date, period)][tx.metal].append(tx)

        metals = (metal,) if metal else Metal.ALL
        buckets = []
        for key in sorted(grouped, reverse=True):
            summaries = [_activity(m, grouped[key].get(m, [])) for m in metals]
            buckets.append(
                PeriodBucket(
                    period=key,
                    metals=summaries,
                    realized_profit=sum((s.realized_profit for s in summaries), ZERO),
                )
            )
        return buckets

    def audit_ledger(self, profile: str, metal: str) -> AuditReport:
        """Recompute lot and profit invariants from the stored draws."""
        report = AuditReport(profile=profile, metal=metal)
        transactions = self._repo.find_by_scope(profile, metal)

        drawn: dict[int, Decimal] = defaultdict(lambda: ZERO)
        lots = {tx.id: tx for tx in transactions if tx.is_buy}

        for sell in (tx for tx in transactions if tx.is_sell):
            for draw in sell.draws:
                drawn[draw.lot_id] += draw.quantity
                lot = lots.get(draw.lot_id)
                if lot is not None and draw.unit_cost != lot.unit_price:
                    report.issues.append(
                        AuditIssue(sell.id, "draw_unit_cost", lot.unit_price, draw.unit_cost)
                    )

            covered = sell.quantity - (sell.unallocated_quantity or ZERO)
            drawn_total = sum((draw.quantity for draw in sell.draws), ZERO)
            if drawn_total != covered:
                report.issues.append(AuditIssue(sell.id, "sell_coverage", covered, drawn_total))

            expected_profit = (covered * sell.unit_price - sell.cost_basis).quantize(
                PROFIT_QUANTUM, rounding=ROUND_HALF_UP
            )
            if sell.realized_profit != expected_profit:
                report.issues.append(
                    AuditIssue(sell.id, "realized_profit", expected_profit, sell.realized_profit)
                )

        for lot in lots.values():
            expected_remaining = lot.quantity - drawn[lot.id]
            if lot.remaining_quantity != expected_remaining:
                report.issues.append(
                    AuditIssue(lot.id, "remaining_quantity", expected_remaining, lot.remaining_quantity)
                )
            if drawn[lot.id] > lot.quantity:
                report.issues.append(AuditIssue(lot.id, "overdrawn", lot.quantity, drawn[lot.id]))

        if report.issues:
            logger.error(f"Ledger {profile}/{metal} failed audit with {len(report.issues)} issues")
        return report
