"""Append-only site ledger.

Totals are always aggregated from the stored entries (no running counters),
so they stay right whatever order entries arrive in.
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from sqlalchemy import func, case
from sqlalchemy.orm import Session

from sitework.core.errors import BudgetExceeded, NotFound, ValidationError
from sitework.core.logging import logger
from sitework.db.models.employee import Employee
from sitework.db.models.ledger import LedgerTransaction, TransactionType
from sitework.db.models.phase import Phase
from sitework.db.models.site import Site
from sitework.schemas.ledger import TransactionIn
from sitework.services.budget import PhaseUsage, evaluate, phase_used, to_money
from sitework.services.permissions import Op, authorize


class BudgetPolicy(str, Enum):
    block = "block"
    warn = "warn"
    allow = "allow"


@dataclass
class LedgerResult:
    transaction: LedgerTransaction
    usage: PhaseUsage | None
    warning: str | None = None


@dataclass(frozen=True)
class SiteTotals:
    total_in: Decimal
    total_out: Decimal

    @property
    def balance(self) -> Decimal:
        return self.total_in - self.total_out


def _validate(data: TransactionIn) -> str:
    tx_type = (data.type or "").upper()
    if tx_type not in (TransactionType.IN.value, TransactionType.OUT.value):
        raise ValidationError("Invalid transaction type")
    if data.amount is None or to_money(data.amount) <= 0:
        raise ValidationError("Invalid amount")
    if data.date is None:
        raise ValidationError("Date is required")
    if tx_type == TransactionType.OUT.value:
        if not data.phase_id:
            raise ValidationError("Phase is required for OUT transactions")
        if data.payment_method:
            raise ValidationError("Payment method applies to IN transactions only")
    return tx_type


def _over_budget_message(usage: PhaseUsage) -> str:
    return f"Phase budget exceeded by {-usage.remaining} (budget {usage.budget}, used {usage.used})"


def record_transaction(
    db: Session,
    site_id: int,
    data: TransactionIn,
    actor: Employee,
    policy: BudgetPolicy = BudgetPolicy.warn,
) -> LedgerResult:
    authorize(actor, Op.transaction_create)
    tx_type = _validate(data)
    amount = to_money(data.amount)

    if db.get(Site, site_id) is None:
        raise NotFound("Site not found")

    usage = None
    warning = None
    override = False
    if data.phase_id:
        # row lock serializes evaluate+insert against other entries on this phase
        phase = db.query(Phase).filter(Phase.id == data.phase_id).with_for_update().one_or_none()
        if phase is None:
            raise NotFound("Phase not found")
        if phase.site_id != site_id:
            raise ValidationError("Phase does not belong to this site")

        if tx_type == TransactionType.OUT.value:
            usage = evaluate(phase.id, phase.budget, phase_used(db, phase.id), amount)
            if usage.over_budget and policy != BudgetPolicy.allow:
                if policy == BudgetPolicy.block:
                    if not data.override_budget:
                        db.rollback()
                        raise BudgetExceeded(_over_budget_message(usage))
                    override = True
                warning = _over_budget_message(usage)

    tx = LedgerTransaction(
        site_id=site_id,
        phase_id=data.phase_id,
        type=tx_type,
        amount=amount,
        date=data.date,
        description=data.description,
        payment_method=data.payment_method if tx_type == TransactionType.IN.value else None,
        created_by=actor.id,
        budget_override=override,
    )
    db.add(tx)
    db.commit()
    db.refresh(tx)
    logger.info(
        "transaction_recorded",
        transaction_id=tx.id,
        site_id=site_id,
        phase_id=tx.phase_id,
        type=tx_type,
        amount=str(amount),
        over_budget=bool(usage and usage.over_budget),
        policy=policy.value,
    )
    return LedgerResult(transaction=tx, usage=usage, warning=warning)


def list_transactions(db: Session, site_id: int) -> list[LedgerTransaction]:
    return (
        db.query(LedgerTransaction)
        .filter(LedgerTransaction.site_id == site_id)
        .order_by(LedgerTransaction.date.desc(), LedgerTransaction.created_at.desc(), LedgerTransaction.id.desc())
        .all()
    )


def site_totals(db: Session, site_id: int) -> SiteTotals:
    total_in, total_out = (
        db.query(
            func.coalesce(func.sum(case((LedgerTransaction.type == TransactionType.IN.value, LedgerTransaction.amount), else_=0)), 0),
            func.coalesce(func.sum(case((LedgerTransaction.type == TransactionType.OUT.value, LedgerTransaction.amount), else_=0)), 0),
        )
        .filter(LedgerTransaction.site_id == site_id)
        .one()
    )
    return SiteTotals(total_in=to_money(total_in), total_out=to_money(total_out))
