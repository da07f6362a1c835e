import datetime as dt
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Date, DateTime, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitework.db.base import Base
from sitework.db.models._mixins import TimestampMixin

class PhaseStatus(str, Enum):
    not_started = "Not Started"
    in_progress = "In Progress"
    waiting_approval = "Waiting Approval"
    completed = "Completed"
    delayed = "Delayed"
    rejected = "Rejected"

class Phase(Base, TimestampMixin):
    __tablename__ = "phase"

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("site.id", ondelete="CASCADE"), index=True)
    milestone_id: Mapped[int | None] = mapped_column(
        ForeignKey("milestone.id", ondelete="SET NULL"), nullable=True, index=True
    )

    name: Mapped[str] = mapped_column(String(256))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_num: Mapped[int] = mapped_column(Integer, default=0)
    # allocation ceiling for OUT transactions, advisory only
    budget: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(32), default=PhaseStatus.not_started.value, index=True)

    planned_start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    planned_end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    submitted_by: Mapped[int | None] = mapped_column(ForeignKey("employee.id", ondelete="SET NULL"), nullable=True)
    submitted_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[int | None] = mapped_column(ForeignKey("employee.id", ondelete="SET NULL"), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    site = relationship("Site", back_populates="phases")
    milestone = relationship("Milestone", back_populates="phases")
    tasks = relationship("Task", back_populates="phase", order_by="Task.id")

    __mapper_args__ = {"version_id_col": version}
