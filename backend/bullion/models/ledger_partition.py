"""Ledger partition model - version row for one (profile, metal) ledger."""

from datetime import datetime

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from bullion.database import Base


class LedgerPartition(Base):
    """Optimistic-concurrency guard for a (profile, metal) ledger.

    Every mutation bumps ``version``. SQLAlchemy adds ``WHERE version = :old``
    to the UPDATE, so a writer that read a stale version fails with
    ``StaleDataError`` instead of overwriting another writer's lot state.
    """

    __tablename__ = "ledger_partitions"
    __table_args__ = (UniqueConstraint("profile", "metal", name="uq_ledger_partition_scope"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    profile: Mapped[str] = mapped_column(String(100))
    metal: Mapped[str] = mapped_column(String(10))
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<LedgerPartition(profile='{self.profile}', metal='{self.metal}', version={self.version})>"
