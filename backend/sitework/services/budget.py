from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from sitework.core.errors import NotFound, ValidationError
from sitework.core.logging import logger
from sitework.db.models.employee import Employee
from sitework.db.models.ledger import LedgerTransaction, TransactionType
from sitework.db.models.phase import Phase
from sitework.services.permissions import Op, authorize

CENT = Decimal("0.01")


def to_money(v: Any) -> Decimal:
    if v is None:
        return Decimal("0.00")
    if not isinstance(v, Decimal):
        v = Decimal(str(v))
    return v.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PhaseUsage:
    phase_id: int
    budget: Decimal
    used: Decimal
    remaining: Decimal
    over_budget: bool
    # set when evaluating a prospective entry that is not stored yet
    pending_amount: Decimal | None = None


def evaluate(phase_id: int, budget: Any, used: Any, pending_amount: Any = None) -> PhaseUsage:
    """Pure utilization math; ``remaining`` goes negative instead of clamping."""
    budget = to_money(budget)
    used = to_money(used)
    if pending_amount is not None:
        pending_amount = to_money(pending_amount)
        used = used + pending_amount
    remaining = budget - used
    return PhaseUsage(
        phase_id=phase_id,
        budget=budget,
        used=used,
        remaining=remaining,
        over_budget=used > budget,
        pending_amount=pending_amount,
    )


def phase_used(db: Session, phase_id: int) -> Decimal:
    total = (
        db.query(func.coalesce(func.sum(LedgerTransaction.amount), 0))
        .filter(LedgerTransaction.phase_id == phase_id, LedgerTransaction.type == TransactionType.OUT.value)
        .scalar()
    )
    return to_money(total)


def phase_usage(db: Session, phase_id: int, pending_amount: Any = None) -> PhaseUsage:
    phase = db.get(Phase, phase_id)
    if phase is None:
        raise NotFound("Phase not found")
    if pending_amount is not None and to_money(pending_amount) <= 0:
        raise ValidationError("Invalid amount")
    return evaluate(phase.id, phase.budget, phase_used(db, phase.id), pending_amount)


def phase_financials(db: Session, site_id: int) -> list[dict]:
    used_sq = (
        db.query(
            LedgerTransaction.phase_id.label("phase_id"),
            func.sum(LedgerTransaction.amount).label("used"),
        )
        .filter(LedgerTransaction.site_id == site_id, LedgerTransaction.type == TransactionType.OUT.value)
        .group_by(LedgerTransaction.phase_id)
        .subquery()
    )
    rows = (
        db.query(Phase.id, Phase.name, Phase.order_num, Phase.budget, func.coalesce(used_sq.c.used, 0).label("used"))
        .outerjoin(used_sq, used_sq.c.phase_id == Phase.id)
        .filter(Phase.site_id == site_id)
        .order_by(Phase.order_num, Phase.id)
        .all()
    )
    out = []
    for r in rows:
        usage = evaluate(r.id, r.budget, r.used)
        out.append(dict(
            id=r.id,
            name=r.name,
            order_num=r.order_num,
            budget=usage.budget,
            used_amount=usage.used,
            remaining=usage.remaining,
            over_budget=usage.over_budget,
        ))
    return out


def set_phase_budget(db: Session, phase_id: int, budget: Any, actor: Employee) -> Phase:
    """Overwrites the allocation; existing entries are not re-validated, so a
    phase may become over budget purely from a decrease."""
    authorize(actor, Op.phase_set_budget)
    if budget is None or to_money(budget) < 0:
        raise ValidationError("Invalid budget amount")
    phase = db.get(Phase, phase_id)
    if phase is None:
        raise NotFound("Phase not found")
    old = phase.budget
    phase.budget = to_money(budget)
    db.commit()
    db.refresh(phase)
    logger.info("phase_budget_updated", phase_id=phase.id, old=str(old), new=str(phase.budget), actor_id=actor.id)
    return phase
