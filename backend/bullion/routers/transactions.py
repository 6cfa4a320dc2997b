"""Transactions API router - add, edit, delete and list ledger entries.

Handlers only translate between HTTP and the ledger service; lot accounting
happens in ``bullion.services.ledger``. Ledger errors are turned into
responses by the exception handlers registered in ``bullion.main``.
"""

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from bullion.database import get_db
from bullion.schemas.transaction import Transaction as TransactionSchema
from bullion.schemas.transaction import TransactionCreate, TransactionUpdate
from bullion.services.ledger import (
    LedgerFilter,
    LedgerService,
    TransactionChanges,
    TransactionIntent,
)

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("", response_model=list[TransactionSchema])
async def list_transactions(
    profile: str = Query(..., min_length=1, description="Profile whose ledger to list"),
    metal: Literal["Gold", "Silver"] | None = None,
    kind: Literal["Buy", "Sell"] | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    """
    Get a profile's ledger, oldest first.

    Filters:
    - metal: Gold or Silver
    - kind: Buy or Sell
    - start_date: Transactions on or after this date
    - end_date: Transactions on or before this date
    """
    return LedgerService(db).list_ledger(
        LedgerFilter(
            profile=profile,
            metal=metal,
            kind=kind,
            start_date=start_date,
            end_date=end_date,
        )
    )


@router.get("/{transaction_id}", response_model=TransactionSchema)
async def get_transaction(transaction_id: int, db: Session = Depends(get_db)):
    """Get a specific transaction by ID, including its lot draws."""
    return LedgerService(db).get_transaction(transaction_id)


@router.post("", response_model=TransactionSchema, status_code=status.HTTP_201_CREATED)
async def create_transaction(transaction: TransactionCreate, db: Session = Depends(get_db)):
    """
    Add a transaction.

    Business Logic:
    - Buy: opens a new lot with its full quantity remaining
    - Sell: consumes open lots of the same metal in matching-policy order
      and records realized profit; rejected with 409 when stock is short
      under strict mode
    """
    intent = TransactionIntent(**transaction.model_dump())
    return LedgerService(db).add_transaction(intent)


@router.patch("/{transaction_id}", response_model=TransactionSchema)
async def update_transaction(
    transaction_id: int,
    transaction_update: TransactionUpdate,
    db: Session = Depends(get_db),
):
    """
    Edit quantity, unit price, date or notes of a transaction.

    Buy edits keep the amount already sold from the lot; sell quantity edits
    reverse the sell's draws and match it again.
    """
    fields = transaction_update.model_dump(exclude_unset=True)
    if "notes" in fields and fields["notes"] is None:
        fields["notes"] = ""  # explicit null clears the notes
    changes = TransactionChanges(**fields)
    return LedgerService(db).edit_transaction(transaction_id, changes)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    """
    Delete a transaction.

    Sells give their stock back to the lots they drew from. Buys that still
    back a sell are rejected with 409.
    """
    LedgerService(db).delete_transaction(transaction_id)
    return None
