import datetime as dt
from decimal import Decimal
from pydantic import BaseModel, field_validator

from sitework.services.dates import coerce_date


class TransactionIn(BaseModel):
    type: str | None = None  # IN|OUT
    amount: Decimal | None = None
    date: dt.date | None = None
    phase_id: int | None = None
    description: str | None = None
    payment_method: str | None = None
    # only honoured under the "block" budget policy
    override_budget: bool = False

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v):
        return coerce_date(v)


class TransactionOut(BaseModel):
    id: int
    site_id: int
    phase_id: int | None = None
    phase_name: str | None = None
    type: str
    amount: float
    date: dt.date
    description: str | None = None
    payment_method: str | None = None
    created_by: int | None = None
    created_by_name: str | None = None
    budget_override: bool = False
    created_at: dt.datetime | None = None


class PhaseUsageOut(BaseModel):
    phase_id: int
    budget: float
    used: float
    remaining: float
    over_budget: bool
    pending_amount: float | None = None


class TransactionCreatedOut(BaseModel):
    message: str
    transaction: TransactionOut
    budget: PhaseUsageOut | None = None
    warning: str | None = None


class LedgerStats(BaseModel):
    total_in: float
    total_out: float
    balance: float


class LedgerOut(BaseModel):
    message: str = "ok"
    transactions: list[TransactionOut]
    stats: LedgerStats


class BudgetIn(BaseModel):
    budget: Decimal | None = None


class PhaseFinancialRow(BaseModel):
    id: int
    name: str
    order_num: int
    budget: float
    used_amount: float
    remaining: float
    over_budget: bool


class PhaseFinancialsOut(BaseModel):
    message: str = "ok"
    phases: list[PhaseFinancialRow]
