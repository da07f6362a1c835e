import datetime as dt
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Date, Numeric, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitework.db.base import Base
from sitework.db.models._mixins import TimestampMixin

class TransactionType(str, Enum):
    IN = "IN"
    OUT = "OUT"

class LedgerTransaction(Base, TimestampMixin):
    """Append-only ledger entry. Corrections are new offsetting entries."""

    __tablename__ = "ledger_transaction"
    __table_args__ = (Index("ix_ledger_phase_type", "phase_id", "type"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("site.id", ondelete="CASCADE"), index=True)
    phase_id: Mapped[int | None] = mapped_column(ForeignKey("phase.id", ondelete="SET NULL"), nullable=True)

    type: Mapped[str] = mapped_column(String(8))  # IN|OUT
    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2))
    date: Mapped[dt.date] = mapped_column(Date, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("employee.id", ondelete="SET NULL"), nullable=True)
    budget_override: Mapped[bool] = mapped_column(Boolean, default=False)

    phase = relationship("Phase")
    creator = relationship("Employee")
