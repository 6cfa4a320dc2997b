"""Main FastAPI application."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bullion.config import settings
from bullion.schemas.common import ErrorResponse
from bullion.services.ledger.errors import (
    ConcurrentModificationError,
    InsufficientInventoryError,
    InvalidTransactionError,
    LedgerError,
    LotInUseError,
    LotNotFoundError,
    NegativeRemainingError,
)
from bullion.services.repositories.exceptions import NotFoundError, RepositoryError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Bullion Ledger API",
    description="Gold and silver buy/sell ledger with lot-level profit attribution",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(
    request: Request, exc: Exception, status_code: int, details: dict | None = None
) -> JSONResponse:
    error = type(exc).__name__.removesuffix("Error")
    body = ErrorResponse(error=error, message=str(exc), details=details, path=request.url.path)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    """Map lot-accounting errors onto HTTP responses."""
    if isinstance(exc, InsufficientInventoryError):
        details = {
            "metal": exc.metal,
            "requested": str(exc.requested),
            "available": str(exc.available),
            "shortfall": str(exc.shortfall),
        }
        return _error_response(request, exc, status.HTTP_409_CONFLICT, details)
    if isinstance(exc, NegativeRemainingError):
        details = {"lot_id": exc.lot_id, "committed": str(exc.committed)}
        return _error_response(request, exc, status.HTTP_409_CONFLICT, details)
    if isinstance(exc, LotInUseError):
        details = {"lot_id": exc.lot_id, "sell_ids": exc.sell_ids}
        return _error_response(request, exc, status.HTTP_409_CONFLICT, details)
    if isinstance(exc, ConcurrentModificationError):
        return _error_response(request, exc, status.HTTP_409_CONFLICT)
    if isinstance(exc, LotNotFoundError):
        return _error_response(request, exc, status.HTTP_404_NOT_FOUND, {"lot_id": exc.lot_id})
    if isinstance(exc, InvalidTransactionError):
        return _error_response(request, exc, status.HTTP_400_BAD_REQUEST)

    # OverDraw and consistency failures are defects, not user errors
    logger.error(f"Ledger defect on {request.method} {request.url.path}: {exc}")
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.exception_handler(RepositoryError)
async def repository_error_handler(request: Request, exc: RepositoryError):
    """Map repository lookups onto HTTP responses."""
    if isinstance(exc, NotFoundError):
        details = {"entity_type": exc.entity_type, "identifier": exc.identifier}
        return _error_response(request, exc, status.HTTP_404_NOT_FOUND, details)
    logger.error(f"Repository error on {request.method} {request.url.path}: {exc}")
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Bullion Ledger API", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


# Import and include routers
from bullion.routers import summary, transactions

app.include_router(transactions.router)
app.include_router(summary.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, reload=True)
