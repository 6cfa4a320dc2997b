"""Pydantic schemas for metal transactions."""

import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LotDraw(BaseModel):
    """Amount a sell took from one lot."""

    model_config = ConfigDict(from_attributes=True)

    lot_id: int
    sequence: int
    quantity: Decimal
    unit_cost: Decimal


class TransactionCreate(BaseModel):
    """Schema for adding a buy or a sell."""

    profile: str = Field(..., min_length=1, max_length=100)
    kind: Literal["Buy", "Sell"] = Field(..., description="Transaction kind: Buy or Sell")
    metal: Literal["Gold", "Silver"]
    quantity: Decimal = Field(
        ..., gt=0, decimal_places=8, description="Quantity in the metal's canonical unit"
    )
    unit_price: Decimal = Field(..., gt=0, decimal_places=4, description="Price per canonical unit")
    date: datetime.date
    notes: str | None = None


class TransactionUpdate(BaseModel):
    """Schema for editing a transaction. Kind, metal and profile are fixed."""

    model_config = ConfigDict(extra="forbid")

    quantity: Decimal | None = Field(None, gt=0, decimal_places=8)
    unit_price: Decimal | None = Field(None, gt=0, decimal_places=4)
    date: datetime.date | None = None
    notes: str | None = Field(None, description="null or empty string clears the notes")


class Transaction(BaseModel):
    """Schema for transaction responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    profile: str
    kind: str
    metal: str
    quantity: Decimal
    unit_price: Decimal
    date: datetime.date
    notes: str | None = None
    remaining_quantity: Decimal | None = Field(None, description="Buy lots only")
    realized_profit: Decimal | None = Field(None, description="Sells only")
    unallocated_quantity: Decimal | None = Field(None, description="Sells only; open short")
    consumed_lots: list[int] = Field(default_factory=list, description="Sells only, match order")
    draws: list[LotDraw] = Field(default_factory=list)
    created_at: datetime.datetime | None = None
