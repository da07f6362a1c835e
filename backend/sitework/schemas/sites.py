import datetime as dt
from decimal import Decimal
from pydantic import BaseModel, Field

from sitework.db.models.site import SiteStatus

class SiteCreate(BaseModel):
    name: str = Field(..., min_length=1)
    location: str | None = None
    description: str | None = None
    status: SiteStatus = SiteStatus.active
    budget: Decimal = Field(default=Decimal("0"), ge=0)
    start_date: dt.date | None = None
    end_date: dt.date | None = None


class SiteUpdate(BaseModel):
    name: str | None = None
    location: str | None = None
    description: str | None = None
    status: SiteStatus | None = None
    budget: Decimal | None = Field(default=None, ge=0)
    start_date: dt.date | None = None
    end_date: dt.date | None = None

class SiteOut(BaseModel):
    id: int
    name: str
    location: str | None = None
    description: str | None = None
    status: str
    budget: float
    start_date: dt.date | None = None
    end_date: dt.date | None = None
