import datetime as dt

from sqlalchemy.orm import Session

from sitework.core.errors import Forbidden, NotFound, ValidationError
from sitework.core.logging import logger
from sitework.crud.phases import task_counts
from sitework.db.models.employee import Employee
from sitework.db.models.phase import Phase, PhaseStatus
from sitework.db.models.site import Site
from sitework.db.models.task import Task
from sitework.schemas.tasks import PhaseCreate, PhaseUpdate
from sitework.services.dates import is_delayed, local_today, utcnow
from sitework.services.notifications import EventType, NotificationEvent, Outcome, admin_ids, emit
from sitework.services.permissions import Op, authorize
from sitework.services.workflow import (
    PHASE_EDGES,
    Action,
    action_for,
    commit_or_conflict,
    ensure_editable,
    next_status,
)

_OPS = {
    Action.start: Op.phase_start,
    Action.complete: Op.phase_complete,
    Action.approve: Op.phase_approve,
    Action.reject: Op.phase_reject,
}

_MESSAGES = {
    Action.start: "Stage started",
    Action.complete: "Stage submitted for approval",
    Action.approve: "Stage approved",
    Action.reject: "Stage rejected",
}

_REQUIRED_FIELDS = ("name", "order_num")


def _load(db: Session, phase_id: int) -> Phase:
    phase = db.get(Phase, phase_id)
    if phase is None:
        raise NotFound("Phase not found")
    return phase


def phase_view(phase: Phase, counts: dict[int, tuple[int, int]], today: dt.date | None = None) -> dict:
    total, completed = counts.get(phase.id, (0, 0))
    return dict(
        id=phase.id,
        site_id=phase.site_id,
        milestone_id=phase.milestone_id,
        name=phase.name,
        description=phase.description,
        order_num=phase.order_num,
        budget=float(phase.budget or 0),
        status=phase.status,
        planned_start_date=phase.planned_start_date,
        planned_end_date=phase.planned_end_date,
        submitted_at=phase.submitted_at,
        completed_at=phase.completed_at,
        approved_by=phase.approved_by,
        rejection_reason=phase.rejection_reason,
        is_delayed=is_delayed(phase.planned_end_date, phase.status, today),
        total_tasks=total,
        completed_tasks=completed,
    )


def phase_views(db: Session, phases: list[Phase]) -> list[dict]:
    counts = task_counts(db, [p.id for p in phases])
    today = local_today()
    return [phase_view(p, counts, today) for p in phases]


def create_phase(db: Session, data: PhaseCreate, actor: Employee) -> Phase:
    authorize(actor, Op.phase_create)
    if db.get(Site, data.site_id) is None:
        raise NotFound("Site not found")
    phase = Phase(
        site_id=data.site_id,
        name=data.name.strip(),
        description=data.description,
        order_num=data.order_num,
        budget=data.budget,
        status=PhaseStatus.not_started.value,
        planned_start_date=data.planned_start_date,
        planned_end_date=data.planned_end_date,
    )
    db.add(phase)
    db.commit()
    db.refresh(phase)
    logger.info("phase_created", phase_id=phase.id, site_id=phase.site_id, actor_id=actor.id)
    return phase


def _apply(db: Session, phase: Phase, action: Action, actor: Employee, reason: str | None = None) -> list[NotificationEvent]:
    target = next_status(PHASE_EDGES, phase.status, action, "Stage")
    now = utcnow()
    events: list[NotificationEvent] = []
    submitter = (phase.submitted_by,) if phase.submitted_by else ()

    if action == Action.complete:
        phase.submitted_by = actor.id
        phase.submitted_at = now
        events.append(NotificationEvent(
            type=EventType.PHASE_SUBMITTED,
            message=f'Stage "{phase.name}" submitted for approval',
            project_id=phase.site_id,
            employee_ids=admin_ids(db),
            phase_id=phase.id,
        ))
    elif action == Action.approve:
        phase.completed_at = now
        phase.approved_by = actor.id
        phase.rejection_reason = None
        events.append(NotificationEvent(
            type=EventType.PHASE_APPROVED,
            message=f'Stage "{phase.name}" was approved',
            project_id=phase.site_id,
            employee_ids=submitter,
            phase_id=phase.id,
        ))
    elif action == Action.reject:
        phase.rejection_reason = reason
        phase.completed_at = None
        events.append(NotificationEvent(
            type=EventType.PHASE_REJECTED,
            message=f'Stage "{phase.name}" was rejected: {reason}',
            project_id=phase.site_id,
            employee_ids=submitter,
            phase_id=phase.id,
        ))

    prev = phase.status
    phase.status = target
    logger.info("phase_transition", phase_id=phase.id, action=action.value, old=prev, new=target, actor_id=actor.id)
    # milestone progress counts tasks only, so readiness is raised by task approval
    return events


def _check(action: Action, actor: Employee, reason: str | None) -> str | None:
    authorize(actor, _OPS[action])
    if action == Action.reject:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")
    return reason


def transition_phase(
    db: Session,
    phase_id: int,
    action: Action,
    actor: Employee,
    reason: str | None = None,
    dispatcher=None,
) -> Outcome:
    reason = _check(action, actor, reason)
    phase = _load(db, phase_id)
    events = _apply(db, phase, action, actor, reason)
    emit(db, dispatcher, events)
    commit_or_conflict(db, phase_id=phase.id, action=action.value)
    db.refresh(phase)
    return Outcome(entity=phase, message=_MESSAGES[action], events=events)


def start_phase(db: Session, phase_id: int, actor: Employee, dispatcher=None) -> Outcome:
    return transition_phase(db, phase_id, Action.start, actor, dispatcher=dispatcher)


def complete_phase(db: Session, phase_id: int, actor: Employee, dispatcher=None) -> Outcome:
    return transition_phase(db, phase_id, Action.complete, actor, dispatcher=dispatcher)


def approve_phase(db: Session, phase_id: int, actor: Employee, dispatcher=None) -> Outcome:
    return transition_phase(db, phase_id, Action.approve, actor, dispatcher=dispatcher)


def reject_phase(db: Session, phase_id: int, actor: Employee, reason: str | None, dispatcher=None) -> Outcome:
    return transition_phase(db, phase_id, Action.reject, actor, reason=reason, dispatcher=dispatcher)


def update_phase(db: Session, phase_id: int, data: PhaseUpdate, actor: Employee, dispatcher=None) -> Outcome:
    """Admins edit fields; employees can only move status along the edge table."""
    authorize(actor, Op.phase_update)
    phase = _load(db, phase_id)
    changes = data.model_dump(exclude_unset=True)
    status = changes.pop("status", None)
    reason = changes.pop("reason", None)

    if changes and not actor.is_admin:
        raise Forbidden(f"Employees cannot change: {', '.join(sorted(changes))}")
    nulls = [f for f in _REQUIRED_FIELDS if f in changes and changes[f] is None]
    if nulls:
        raise ValidationError(f"Fields cannot be null: {', '.join(nulls)}")
    ensure_editable(phase.status, "Stage")

    action = None
    if status is not None and status != phase.status:
        action = action_for(PHASE_EDGES, phase.status, status)
        reason = _check(action, actor, reason)

    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Stage name cannot be empty")
    for field, value in changes.items():
        setattr(phase, field, value.strip() if field == "name" else value)

    events: list[NotificationEvent] = []
    if action is not None:
        events = _apply(db, phase, action, actor, reason)
    emit(db, dispatcher, events)
    commit_or_conflict(db, phase_id=phase.id, action="update")
    db.refresh(phase)
    return Outcome(entity=phase, message=_MESSAGES[action] if action else "Stage updated", events=events)


def phase_tasks(db: Session, phase_id: int) -> tuple[Phase, list[Task]]:
    phase = _load(db, phase_id)
    return phase, list(phase.tasks)
