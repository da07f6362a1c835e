import datetime as dt
from decimal import Decimal
from enum import Enum
from sqlalchemy import String, Text, Date, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sitework.db.base import Base
from sitework.db.models._mixins import TimestampMixin

class SiteStatus(str, Enum):
    active = "active"
    completed = "completed"
    delayed = "delayed"
    pending = "pending"

class Site(Base, TimestampMixin):
    __tablename__ = "site"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(256))
    location: Mapped[str | None] = mapped_column(String(512), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # set by admin only, never moved by the workflow
    status: Mapped[str] = mapped_column(String(16), default=SiteStatus.active.value)
    budget: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=Decimal("0"))
    start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    phases = relationship("Phase", back_populates="site", order_by="Phase.order_num")
