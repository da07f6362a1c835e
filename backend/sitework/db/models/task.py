import datetime as dt
from decimal import Decimal
from enum import Enum
from sqlalchemy import Column, String, Text, ForeignKey, Date, DateTime, Integer, Numeric, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitework.db.base import Base
from sitework.db.models._mixins import TimestampMixin

class TaskStatus(str, Enum):
    not_started = "Not Started"
    in_progress = "In Progress"
    waiting_approval = "Waiting Approval"
    completed = "Completed"
    rejected = "Rejected"

task_assignment = Table(
    "task_assignment",
    Base.metadata,
    Column("task_id", ForeignKey("task.id", ondelete="CASCADE"), primary_key=True),
    Column("employee_id", ForeignKey("employee.id", ondelete="CASCADE"), primary_key=True),
)

class Task(Base, TimestampMixin):
    __tablename__ = "task"

    id: Mapped[int] = mapped_column(primary_key=True)
    phase_id: Mapped[int] = mapped_column(ForeignKey("phase.id", ondelete="CASCADE"), index=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("site.id", ondelete="CASCADE"), index=True)  # copy of phase.site_id

    name: Mapped[str] = mapped_column(String(512))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), default=TaskStatus.not_started.value, index=True)
    progress: Mapped[int] = mapped_column(Integer, default=0)
    due_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(15, 2), nullable=True)

    submitted_by: Mapped[int | None] = mapped_column(ForeignKey("employee.id", ondelete="SET NULL"), nullable=True)
    submitted_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[int | None] = mapped_column(ForeignKey("employee.id", ondelete="SET NULL"), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    phase = relationship("Phase", back_populates="tasks")
    assignees = relationship("Employee", secondary=task_assignment, order_by="Employee.id")

    __mapper_args__ = {"version_id_col": version}

    @property
    def assignee_ids(self) -> list[int]:
        return [e.id for e in self.assignees]
