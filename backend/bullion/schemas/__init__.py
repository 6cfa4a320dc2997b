"""Pydantic schemas for request/response validation."""

from bullion.schemas.common import ErrorResponse
from bullion.schemas.summary import (
    AuditIssue,
    AuditReport,
    MetalSummary,
    PeriodBucket,
    ProfileSummary,
)
from bullion.schemas.transaction import (
    LotDraw,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)

__all__ = [
    "AuditIssue",
    "AuditReport",
    "ErrorResponse",
    "LotDraw",
    "MetalSummary",
    "PeriodBucket",
    "ProfileSummary",
    "Transaction",
    "TransactionCreate",
    "TransactionUpdate",
]
