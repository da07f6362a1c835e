from enum import Enum
from sqlalchemy import String, Text, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitework.db.base import Base
from sitework.db.models._mixins import TimestampMixin

class MaterialStatus(str, Enum):
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"
    received = "Received"

class MaterialRequest(Base, TimestampMixin):
    __tablename__ = "material_request"

    id: Mapped[int] = mapped_column(primary_key=True)
    site_id: Mapped[int] = mapped_column(ForeignKey("site.id", ondelete="CASCADE"), index=True)
    task_id: Mapped[int | None] = mapped_column(ForeignKey("task.id", ondelete="SET NULL"), nullable=True, index=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employee.id", ondelete="CASCADE"), index=True)

    material_name: Mapped[str] = mapped_column(String(255))
    quantity: Mapped[str] = mapped_column(String(100))  # free text: "40 bags", "12 m3"
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default=MaterialStatus.pending.value, index=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    site = relationship("Site")
    task = relationship("Task")
    employee = relationship("Employee")

    __mapper_args__ = {"version_id_col": version}
