import datetime as dt
from pydantic import BaseModel, Field, field_validator

from sitework.db.models.milestone import MilestoneStatus
from sitework.services.dates import coerce_date


class MilestoneCreate(BaseModel):
    site_id: int
    name: str = Field(..., min_length=1)
    planned_start_date: dt.date | None = None
    planned_end_date: dt.date | None = None
    phase_ids: list[int] = Field(default_factory=list)

    @field_validator("planned_start_date", "planned_end_date", mode="before")
    @classmethod
    def _dates(cls, v):
        return coerce_date(v)


class MilestoneUpdate(BaseModel):
    name: str | None = None
    status: MilestoneStatus | None = None
    planned_start_date: dt.date | None = None
    planned_end_date: dt.date | None = None
    delay_reason: str | None = None
    # None keeps current links, [] unlinks everything
    phase_ids: list[int] | None = None

    @field_validator("planned_start_date", "planned_end_date", mode="before")
    @classmethod
    def _dates(cls, v):
        return coerce_date(v)


class MilestonePhase(BaseModel):
    id: int
    name: str
    status: str


class MilestoneOut(BaseModel):
    id: int
    site_id: int
    name: str
    status: str
    progress: int
    planned_start_date: dt.date | None = None
    planned_end_date: dt.date | None = None
    actual_completion_date: dt.date | None = None
    delay_reason: str | None = None
    is_delayed: bool
    ready_for_completion: bool
    total_tasks: int
    completed_tasks: int
    phases: list[MilestonePhase]


class MilestoneActionOut(BaseModel):
    message: str
    milestone: MilestoneOut


class MilestoneListOut(BaseModel):
    message: str = "ok"
    milestones: list[MilestoneOut]
