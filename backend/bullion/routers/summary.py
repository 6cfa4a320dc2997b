"""Summary API router - read-only totals, period reports and audits."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from bullion.constants import Metal
from bullion.database import get_db
from bullion.schemas.summary import AuditReport, MetalSummary, PeriodBucket, ProfileSummary
from bullion.services.ledger import LedgerReportService
from bullion.services.ledger.reports import PERIODS

router = APIRouter(prefix="/api", tags=["summary"])


def _validate_metal(metal: str) -> str:
    if metal not in Metal.ALL:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid metal. Must be one of: {', '.join(Metal.ALL)}",
        )
    return metal


@router.get("/summary", response_model=ProfileSummary)
async def get_profile_summary(
    profile: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """Per-metal totals, current stock and combined realized profit."""
    return LedgerReportService(db).summarize_profile(profile)


@router.get("/summary/{metal}", response_model=MetalSummary)
async def get_metal_summary(
    metal: str,
    profile: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """Totals and current stock for one metal."""
    return LedgerReportService(db).summarize_metal(profile, _validate_metal(metal))


@router.get("/reports/{period}", response_model=list[PeriodBucket])
async def get_period_report(
    period: str,
    profile: str = Query(..., min_length=1),
    metal: str | None = None,
    db: Session = Depends(get_db),
):
    """Monthly or weekly activity, newest first."""
    if period not in PERIODS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid period. Must be one of: {', '.join(PERIODS)}",
        )
    if metal is not None:
        _validate_metal(metal)
    return LedgerReportService(db).period_report(profile, period, metal)


@router.get("/audit", response_model=AuditReport)
async def audit_ledger(
    profile: str = Query(..., min_length=1),
    metal: str = Query(...),
    db: Session = Depends(get_db),
):
    """Recheck lot and profit invariants for one ledger partition."""
    report = LedgerReportService(db).audit_ledger(profile, _validate_metal(metal))
    # is_consistent is a property, so build the response from attributes
    return AuditReport.model_validate(report)
