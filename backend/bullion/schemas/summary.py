"""Pydantic schemas for ledger summaries, reports and audits."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class MetalSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    metal: str
    total_buy_quantity: Decimal
    total_buy_value: Decimal
    total_sell_quantity: Decimal
    total_sell_value: Decimal
    average_buy_rate: Decimal
    average_sell_rate: Decimal
    realized_profit: Decimal
    current_stock: Decimal
    stock_value: Decimal
    open_short_quantity: Decimal


class ProfileSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    profile: str
    metals: list[MetalSummary]
    total_buy_value: Decimal
    total_sell_value: Decimal
    realized_profit: Decimal


class PeriodBucket(BaseModel):
    """Activity within one month or ISO week.

    Stock fields of the nested summaries are always zero here.
    """

    model_config = ConfigDict(from_attributes=True)

    period: str
    metals: list[MetalSummary]
    realized_profit: Decimal


class AuditIssue(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    transaction_id: int
    rule: str
    expected: Decimal | None
    actual: Decimal | None


class AuditReport(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    profile: str
    metal: str
    is_consistent: bool
    issues: list[AuditIssue]
