"""Milestone progress aggregation.

Progress is a pure function of the task completion counts over the phases
linked to a milestone (``compute_progress``). Reads recompute it and write the
value back to ``milestone.progress`` so summary screens can use the cached
column. ``status`` stays admin-owned: being late or at 100 % only raises
advisory flags.
"""
import datetime as dt

from sqlalchemy import func, case
from sqlalchemy.orm import Session

from sitework.core.errors import NotFound, ValidationError
from sitework.core.logging import logger
from sitework.db.models.employee import Employee
from sitework.db.models.milestone import Milestone, MilestoneStatus
from sitework.db.models.phase import Phase
from sitework.db.models.site import Site
from sitework.db.models.task import Task, TaskStatus
from sitework.schemas.milestones import MilestoneCreate, MilestoneUpdate
from sitework.services.dates import is_delayed, local_today
from sitework.services.notifications import EventType, NotificationEvent, admin_ids
from sitework.services.permissions import Op, authorize


def compute_progress(total: int, completed: int) -> int:
    """Whole percent, halves rounded up; 0 when there is nothing to count."""
    if total <= 0:
        return 0
    return (completed * 200 + total) // (2 * total)


def milestone_counts(db: Session, milestone_id: int) -> tuple[int, int]:
    total, completed = (
        db.query(
            func.count(Task.id),
            func.coalesce(func.sum(case((Task.status == TaskStatus.completed.value, 1), else_=0)), 0),
        )
        .join(Phase, Task.phase_id == Phase.id)
        .filter(Phase.milestone_id == milestone_id)
        .one()
    )
    return int(total or 0), int(completed or 0)


def refresh_progress(db: Session, m: Milestone) -> tuple[int, int]:
    """Recompute and cache progress; returns the (total, completed) it was based on."""
    total, completed = milestone_counts(db, m.id)
    progress = compute_progress(total, completed)
    if m.progress != progress:
        m.progress = progress
        db.commit()
    return total, completed


def readiness_event(db: Session, phase_id: int) -> NotificationEvent | None:
    """Event for admins when a task approval has just taken the milestone to 100 %.

    Expects the approved task under ``phase_id`` to be flushed already, so one
    completed task fewer gives the progress before the approval. Only that
    crossing emits; later approvals under a finished milestone stay quiet.
    """
    phase = db.get(Phase, phase_id)
    if phase is None or phase.milestone_id is None:
        return None
    m = db.get(Milestone, phase.milestone_id)
    if m is None or m.status == MilestoneStatus.completed.value:
        return None
    total, completed = milestone_counts(db, m.id)
    progress = compute_progress(total, completed)
    if progress < 100 or compute_progress(total, completed - 1) == 100:
        return None
    m.progress = progress
    return NotificationEvent(
        type=EventType.MILESTONE_READY,
        message=f'Milestone "{m.name}" is ready for completion',
        project_id=m.site_id,
        employee_ids=admin_ids(db),
        phase_id=phase.id,
    )


def milestone_view(db: Session, m: Milestone, today: dt.date | None = None) -> dict:
    total, completed = refresh_progress(db, m)
    return dict(
        id=m.id,
        site_id=m.site_id,
        name=m.name,
        status=m.status,
        progress=m.progress,
        planned_start_date=m.planned_start_date,
        planned_end_date=m.planned_end_date,
        actual_completion_date=m.actual_completion_date,
        delay_reason=m.delay_reason,
        is_delayed=is_delayed(m.planned_end_date, m.status, today),
        ready_for_completion=m.progress == 100 and m.status != MilestoneStatus.completed.value,
        total_tasks=total,
        completed_tasks=completed,
        phases=[dict(id=p.id, name=p.name, status=p.status) for p in m.phases],
    )


def _load(db: Session, milestone_id: int) -> Milestone:
    m = db.get(Milestone, milestone_id)
    if m is None:
        raise NotFound("Milestone not found")
    return m


def _link_phases(db: Session, m: Milestone, phase_ids: list[int]) -> None:
    ids = list(dict.fromkeys(phase_ids))
    if not ids:
        return
    phases = db.query(Phase).filter(Phase.id.in_(ids)).all()
    found = {p.id for p in phases}
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFound(f"Phases not found: {missing}")
    foreign = [p.id for p in phases if p.site_id != m.site_id]
    if foreign:
        raise ValidationError(f"Phases {foreign} belong to another site")
    for p in phases:
        p.milestone_id = m.id


def _unlink_all(db: Session, milestone_id: int) -> int:
    return (
        db.query(Phase)
        .filter(Phase.milestone_id == milestone_id)
        .update({Phase.milestone_id: None}, synchronize_session="fetch")
    )


def list_site_milestones(db: Session, site_id: int) -> list[Milestone]:
    return (
        db.query(Milestone)
        .filter(Milestone.site_id == site_id)
        .order_by(Milestone.planned_end_date.is_(None), Milestone.planned_end_date, Milestone.id)
        .all()
    )


def get_milestone(db: Session, milestone_id: int) -> Milestone:
    return _load(db, milestone_id)


def create_milestone(db: Session, data: MilestoneCreate, actor: Employee) -> Milestone:
    authorize(actor, Op.milestone_write)
    if db.get(Site, data.site_id) is None:
        raise NotFound("Site not found")
    if data.planned_start_date and data.planned_end_date and data.planned_end_date < data.planned_start_date:
        raise ValidationError("Planned end date is before planned start date")
    m = Milestone(
        site_id=data.site_id,
        name=data.name.strip(),
        status=MilestoneStatus.not_started.value,
        progress=0,
        planned_start_date=data.planned_start_date,
        planned_end_date=data.planned_end_date,
    )
    db.add(m)
    db.flush()
    try:
        _link_phases(db, m, data.phase_ids)
    except (NotFound, ValidationError):
        db.rollback()
        raise
    db.commit()
    db.refresh(m)
    logger.info("milestone_created", milestone_id=m.id, site_id=m.site_id, phases=len(data.phase_ids), actor_id=actor.id)
    return m


def update_milestone(db: Session, milestone_id: int, data: MilestoneUpdate, actor: Employee) -> Milestone:
    authorize(actor, Op.milestone_write)
    m = _load(db, milestone_id)
    changes = data.model_dump(exclude_unset=True)
    phase_ids = changes.pop("phase_ids", None)

    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Milestone name cannot be empty")
    start = changes.get("planned_start_date", m.planned_start_date)
    end = changes.get("planned_end_date", m.planned_end_date)
    if start and end and end < start:
        raise ValidationError("Planned end date is before planned start date")

    if "name" in changes:
        m.name = changes["name"].strip()
    if changes.get("status") is not None:
        status = MilestoneStatus(changes["status"]).value
        if status == MilestoneStatus.completed.value and m.status != status:
            m.actual_completion_date = local_today()
        elif status != MilestoneStatus.completed.value:
            m.actual_completion_date = None
        m.status = status
    for field in ("planned_start_date", "planned_end_date", "delay_reason"):
        if field in changes:
            setattr(m, field, changes[field])

    if phase_ids is not None:
        _unlink_all(db, m.id)
        try:
            _link_phases(db, m, phase_ids)
        except (NotFound, ValidationError):
            db.rollback()
            raise
    db.commit()
    db.refresh(m)
    logger.info("milestone_updated", milestone_id=m.id, status=m.status, actor_id=actor.id)
    return m


def delete_milestone(db: Session, milestone_id: int, actor: Employee) -> int:
    """Unlinks the milestone's phases, then removes it. Phases are kept."""
    authorize(actor, Op.milestone_write)
    m = _load(db, milestone_id)
    unlinked = _unlink_all(db, m.id)
    db.delete(m)
    db.commit()
    logger.info("milestone_deleted", milestone_id=milestone_id, unlinked_phases=unlinked, actor_id=actor.id)
    return unlinked
