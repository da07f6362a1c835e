import datetime as dt
from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Date, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitework.db.base import Base
from sitework.db.models._mixins import TimestampMixin

class MilestoneStatus(str, Enum):
    not_started = "Not Started"
    in_progress = "In Progress"
    completed = "Completed"
    delayed = "Delayed"

class Milestone(Base, TimestampMixin):
    __tablename__ = "milestone"

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("site.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(16), default=MilestoneStatus.not_started.value)
    progress: Mapped[int] = mapped_column(Integer, default=0)  # cached, see services.milestones
    planned_start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    planned_end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    actual_completion_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    delay_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    phases = relationship("Phase", back_populates="milestone", order_by="Phase.order_num")
