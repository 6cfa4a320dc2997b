"""Metal transaction model - one buy lot or one sell in a profile's ledger."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from bullion.constants import TransactionKind
from bullion.database import Base


class MetalTransaction(Base):
    """A buy (which is also a lot) or a sell of gold or silver.

    Buys carry ``remaining_quantity``; sells carry ``realized_profit`` and
    ``unallocated_quantity`` plus their ordered lot draws.
    """

    __tablename__ = "metal_transactions"
    __table_args__ = (
        Index("idx_metal_tx_scope", "profile", "metal"),
        Index("idx_metal_tx_date", "date"),
        Index("idx_metal_tx_open_lots", "profile", "metal", "kind", "remaining_quantity"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    profile: Mapped[str] = mapped_column(String(100))
    kind: Mapped[str] = mapped_column(String(10))  # 'Buy' or 'Sell'
    metal: Mapped[str] = mapped_column(String(10))  # 'Gold' or 'Silver'
    quantity: Mapped[Decimal] = mapped_column(Numeric(20, 8))
    unit_price: Mapped[Decimal] = mapped_column(Numeric(15, 4))
    date: Mapped[date] = mapped_column(Date)
    notes: Mapped[str | None] = mapped_column(Text)

    # Buy only
    remaining_quantity: Mapped[Decimal | None] = mapped_column(Numeric(20, 8))

    # Sell only
    realized_profit: Mapped[Decimal | None] = mapped_column(Numeric(20, 4))
    unallocated_quantity: Mapped[Decimal | None] = mapped_column(Numeric(20, 8))

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    # Relationships
    draws: Mapped[list["LotDraw"]] = relationship(
        back_populates="sell",
        cascade="all, delete-orphan",
        foreign_keys="LotDraw.sell_id",
        order_by="LotDraw.sequence",
    )

    @property
    def is_buy(self) -> bool:
        return self.kind == TransactionKind.BUY

    @property
    def is_sell(self) -> bool:
        return self.kind == TransactionKind.SELL

    @property
    def total_value(self) -> Decimal:
        """Quantity times unit price."""
        return self.quantity * self.unit_price

    @property
    def consumed_lots(self) -> list[int]:
        """Lot ids this sell drew from, in match order."""
        return [draw.lot_id for draw in self.draws]

    @property
    def cost_basis(self) -> Decimal:
        return sum((draw.cost for draw in self.draws), Decimal("0"))

    def __repr__(self) -> str:
        return (
            f"<MetalTransaction(id={self.id}, kind='{self.kind}', metal='{self.metal}', "
            f"quantity={self.quantity}, unit_price={self.unit_price})>"
        )
