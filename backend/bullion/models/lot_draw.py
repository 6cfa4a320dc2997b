"""Lot draw model - the amount a sell took from one buy lot."""

from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bullion.database import Base


class LotDraw(Base):
    """One (lot, amount drawn) pair of a sell's provenance.

    The lot foreign key is RESTRICT so a lot that still backs a sell can never
    be deleted; removing the sell cascades its draws.
    """

    __tablename__ = "lot_draws"
    __table_args__ = (
        UniqueConstraint("sell_id", "sequence", name="uq_lot_draw_sell_sequence"),
        Index("idx_lot_draws_sell", "sell_id"),
        Index("idx_lot_draws_lot", "lot_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    sell_id: Mapped[int] = mapped_column(
        ForeignKey("metal_transactions.id", ondelete="CASCADE")
    )
    lot_id: Mapped[int] = mapped_column(
        ForeignKey("metal_transactions.id", ondelete="RESTRICT")
    )
    sequence: Mapped[int] = mapped_column(Integer)  # Position in the sell's match order
    quantity: Mapped[Decimal] = mapped_column(Numeric(20, 8))
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(15, 4))  # Lot unit price

    # Relationships
    sell: Mapped["MetalTransaction"] = relationship(back_populates="draws", foreign_keys=[sell_id])
    lot: Mapped["MetalTransaction"] = relationship(foreign_keys=[lot_id])

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.unit_cost

    def __repr__(self) -> str:
        return f"<LotDraw(sell_id={self.sell_id}, lot_id={self.lot_id}, quantity={self.quantity})>"
