"""ORM -> response schema builders shared by routers."""
from sitework.db.models.ledger import LedgerTransaction
from sitework.db.models.site import Site
from sitework.db.models.task import Task
from sitework.schemas.ledger import PhaseUsageOut, TransactionOut
from sitework.schemas.sites import SiteOut
from sitework.schemas.tasks import TaskOut
from sitework.services.budget import PhaseUsage
from sitework.services.dates import is_delayed


def site_out(s: Site) -> SiteOut:
    return SiteOut(
        id=s.id,
        name=s.name,
        location=s.location,
        description=s.description,
        status=s.status,
        budget=float(s.budget or 0),
        start_date=s.start_date,
        end_date=s.end_date,
    )


def task_out(t: Task) -> TaskOut:
    return TaskOut(
        id=t.id,
        phase_id=t.phase_id,
        site_id=t.site_id,
        name=t.name,
        description=t.description,
        status=t.status,
        progress=t.progress or 0,
        due_date=t.due_date,
        amount=float(t.amount) if t.amount is not None else None,
        employee_ids=t.assignee_ids,
        submitted_by=t.submitted_by,
        submitted_at=t.submitted_at,
        completed_at=t.completed_at,
        approved_by=t.approved_by,
        rejection_reason=t.rejection_reason,
        is_overdue=is_delayed(t.due_date, t.status),
    )


def transaction_out(tx: LedgerTransaction) -> TransactionOut:
    return TransactionOut(
        id=tx.id,
        site_id=tx.site_id,
        phase_id=tx.phase_id,
        phase_name=tx.phase.name if tx.phase else None,
        type=tx.type,
        amount=float(tx.amount),
        date=tx.date,
        description=tx.description,
        payment_method=tx.payment_method,
        created_by=tx.created_by,
        created_by_name=tx.creator.full_name if tx.creator else None,
        budget_override=bool(tx.budget_override),
        created_at=tx.created_at,
    )


def usage_out(u: PhaseUsage) -> PhaseUsageOut:
    return PhaseUsageOut(
        phase_id=u.phase_id,
        budget=float(u.budget),
        used=float(u.used),
        remaining=float(u.remaining),
        over_budget=u.over_budget,
        pending_amount=float(u.pending_amount) if u.pending_amount is not None else None,
    )
