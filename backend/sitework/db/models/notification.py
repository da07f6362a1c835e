from sqlalchemy import String, Text, ForeignKey, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from sitework.db.base import Base
from sitework.db.models._mixins import TimestampMixin

class Notification(Base, TimestampMixin):
    __tablename__ = "notification"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int | None] = mapped_column(ForeignKey("site.id", ondelete="CASCADE"), nullable=True, index=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employee.id", ondelete="CASCADE"), index=True)
    # no FKs: a notification outlives the task/phase it points to
    task_id: Mapped[int | None] = mapped_column(nullable=True)
    phase_id: Mapped[int | None] = mapped_column(nullable=True)

    type: Mapped[str] = mapped_column(String(50))
    message: Mapped[str] = mapped_column(Text)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
