import datetime as dt
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator

from sitework.services.dates import coerce_date


class PhaseCreate(BaseModel):
    site_id: int
    name: str = Field(..., min_length=1)
    description: str | None = None
    order_num: int = 0
    budget: Decimal = Field(default=Decimal("0"), ge=0)
    planned_start_date: dt.date | None = None
    planned_end_date: dt.date | None = None

    @field_validator("planned_start_date", "planned_end_date", mode="before")
    @classmethod
    def _dates(cls, v):
        return coerce_date(v)


class PhaseUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    order_num: int | None = None
    planned_start_date: dt.date | None = None
    planned_end_date: dt.date | None = None
    status: str | None = None
    reason: str | None = None

    @field_validator("planned_start_date", "planned_end_date", mode="before")
    @classmethod
    def _dates(cls, v):
        return coerce_date(v)


class PhaseOut(BaseModel):
    id: int
    site_id: int
    milestone_id: int | None = None
    name: str
    description: str | None = None
    order_num: int
    budget: float
    status: str
    planned_start_date: dt.date | None = None
    planned_end_date: dt.date | None = None
    submitted_at: dt.datetime | None = None
    completed_at: dt.datetime | None = None
    approved_by: int | None = None
    rejection_reason: str | None = None
    is_delayed: bool = False
    total_tasks: int = 0
    completed_tasks: int = 0


class TaskCreate(BaseModel):
    phase_id: int
    name: str = Field(..., min_length=1)
    description: str | None = None
    due_date: dt.date | None = None
    amount: Decimal | None = Field(default=None, ge=0)
    employee_ids: list[int] = Field(default_factory=list)

    @field_validator("due_date", mode="before")
    @classmethod
    def _due(cls, v):
        return coerce_date(v)


class TaskUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    due_date: dt.date | None = None
    amount: Decimal | None = Field(default=None, ge=0)
    status: str | None = None
    progress: int | None = Field(default=None, ge=0, le=100)
    # only read when status moves Waiting Approval -> In Progress
    reason: str | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _due(cls, v):
        return coerce_date(v)


class TaskOut(BaseModel):
    id: int
    phase_id: int
    site_id: int
    name: str
    description: str | None = None
    status: str
    progress: int
    due_date: dt.date | None = None
    amount: float | None = None
    employee_ids: list[int] = []
    submitted_by: int | None = None
    submitted_at: dt.datetime | None = None
    completed_at: dt.datetime | None = None
    approved_by: int | None = None
    rejection_reason: str | None = None
    is_overdue: bool = False


class PhaseDetailOut(PhaseOut):
    tasks: list[TaskOut] = []


class RejectIn(BaseModel):
    reason: str | None = None


class AssignIn(BaseModel):
    employee_id: int


class TaskActionOut(BaseModel):
    message: str
    task: TaskOut


class AssignOut(TaskActionOut):
    assigned: bool


class PhaseActionOut(BaseModel):
    message: str
    phase: PhaseOut


class ApprovalTaskRow(BaseModel):
    id: int
    name: str
    site_id: int
    site_name: str | None = None
    phase_id: int
    phase_name: str | None = None
    submitted_by: int | None = None
    submitted_at: dt.datetime | None = None


class ApprovalPhaseRow(BaseModel):
    id: int
    name: str
    site_id: int
    site_name: str | None = None
    submitted_by: int | None = None
    submitted_at: dt.datetime | None = None


class ApprovalMaterialRow(BaseModel):
    id: int
    site_id: int
    site_name: str | None = None
    task_id: int | None = None
    employee_id: int
    material_name: str
    quantity: str
    created_at: dt.datetime | None = None


class ApprovalsOut(BaseModel):
    message: str = "ok"
    tasks: list[ApprovalTaskRow]
    phases: list[ApprovalPhaseRow]
    materials: list[ApprovalMaterialRow]
