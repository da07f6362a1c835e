from sqlalchemy import func, case
from sqlalchemy.orm import Session, selectinload

from sitework.db.models.material_request import MaterialRequest, MaterialStatus
from sitework.db.models.phase import Phase, PhaseStatus
from sitework.db.models.site import Site
from sitework.db.models.task import Task, TaskStatus, task_assignment


def list_phases(db: Session, site_id: int):
    return (
        db.query(Phase)
        .filter(Phase.site_id == site_id)
        .order_by(Phase.order_num, Phase.id)
        .all()
    )


def get_task(db: Session, task_id: int) -> Task | None:
    return db.get(Task, task_id)


def list_tasks(
    db: Session,
    assignee_id: int | None = None,
    status: str | None = None,
    site_id: int | None = None,
):
    q = db.query(Task).options(selectinload(Task.assignees))
    if assignee_id is not None:
        q = q.join(task_assignment, task_assignment.c.task_id == Task.id).filter(
            task_assignment.c.employee_id == assignee_id
        )
    if status:
        q = q.filter(Task.status == status)
    if site_id is not None:
        q = q.filter(Task.site_id == site_id)
    return q.order_by(Task.due_date.is_(None), Task.due_date, Task.id).all()


def task_counts(db: Session, phase_ids: list[int]) -> dict[int, tuple[int, int]]:
    """phase_id -> (total tasks, completed tasks)."""
    if not phase_ids:
        return {}
    rows = (
        db.query(
            Task.phase_id,
            func.count(Task.id),
            func.coalesce(func.sum(case((Task.status == TaskStatus.completed.value, 1), else_=0)), 0),
        )
        .filter(Task.phase_id.in_(phase_ids))
        .group_by(Task.phase_id)
        .all()
    )
    return {phase_id: (int(total), int(done)) for phase_id, total, done in rows}


def pending_approvals(db: Session):
    tasks = (
        db.query(Task, Site.name, Phase.name)
        .join(Site, Task.site_id == Site.id)
        .outerjoin(Phase, Task.phase_id == Phase.id)
        .filter(Task.status == TaskStatus.waiting_approval.value)
        .order_by(Site.name, Phase.order_num, Task.submitted_at.desc())
        .all()
    )
    phases = (
        db.query(Phase, Site.name)
        .join(Site, Phase.site_id == Site.id)
        .filter(Phase.status == PhaseStatus.waiting_approval.value)
        .order_by(Site.name, Phase.order_num)
        .all()
    )
    materials = (
        db.query(MaterialRequest, Site.name)
        .join(Site, MaterialRequest.site_id == Site.id)
        .filter(MaterialRequest.status == MaterialStatus.pending.value)
        .order_by(Site.name, MaterialRequest.created_at.desc())
        .all()
    )
    return tasks, phases, materials
