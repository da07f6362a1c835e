from sqlalchemy.orm import Session

from sitework.core.errors import Forbidden, InvalidState, NotFound, ValidationError
from sitework.core.logging import logger
from sitework.crud.phases import list_tasks
from sitework.db.models.employee import Employee
from sitework.db.models.phase import Phase
from sitework.db.models.task import Task
from sitework.schemas.tasks import TaskCreate, TaskUpdate
from sitework.services.dates import utcnow
from sitework.services.milestones import readiness_event
from sitework.services.notifications import EventType, NotificationEvent, Outcome, admin_ids, emit
from sitework.services.permissions import Op, authorize
from sitework.services.workflow import (
    TASK_EDGES,
    Action,
    action_for,
    commit_or_conflict,
    ensure_editable,
    flush_or_conflict,
    next_status,
)

_OPS = {
    Action.start: Op.task_start,
    Action.complete: Op.task_complete,
    Action.approve: Op.task_approve,
    Action.reject: Op.task_reject,
}

_MESSAGES = {
    Action.start: "Task started",
    Action.complete: "Task submitted for approval",
    Action.approve: "Task approved",
    Action.reject: "Task rejected",
}

# fields an employee may change on an assigned task
_EMPLOYEE_FIELDS = {"progress"}
# NOT NULL columns that TaskUpdate still lets a client send as null
_REQUIRED_FIELDS = ("name", "progress")


def _load(db: Session, task_id: int) -> Task:
    task = db.get(Task, task_id)
    if task is None:
        raise NotFound("Task not found")
    return task


def create_task(db: Session, data: TaskCreate, actor: Employee) -> Task:
    authorize(actor, Op.task_create)
    phase = db.get(Phase, data.phase_id)
    if phase is None:
        raise NotFound("Phase not found")
    assignees = []
    for employee_id in dict.fromkeys(data.employee_ids):
        emp = db.get(Employee, employee_id)
        if emp is None:
            raise NotFound(f"Employee {employee_id} not found")
        assignees.append(emp)
    task = Task(
        phase_id=phase.id,
        site_id=phase.site_id,
        name=data.name.strip(),
        description=data.description,
        due_date=data.due_date,
        amount=data.amount,
        assignees=assignees,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("task_created", task_id=task.id, phase_id=phase.id, actor_id=actor.id)
    return task


def _apply(db: Session, task: Task, action: Action, actor: Employee, reason: str | None = None) -> list[NotificationEvent]:
    target = next_status(TASK_EDGES, task.status, action, "Task")
    now = utcnow()
    events: list[NotificationEvent] = []

    if action == Action.complete:
        task.submitted_by = actor.id
        task.submitted_at = now
        task.progress = 100
        events.append(NotificationEvent(
            type=EventType.TASK_SUBMITTED,
            message=f'Task "{task.name}" submitted for approval',
            project_id=task.site_id,
            employee_ids=admin_ids(db),
            task_id=task.id,
            phase_id=task.phase_id,
        ))
    elif action == Action.approve:
        task.completed_at = now
        task.approved_by = actor.id
        task.rejection_reason = None
        events.append(NotificationEvent(
            type=EventType.TASK_APPROVED,
            message=f'Your task "{task.name}" was approved',
            project_id=task.site_id,
            employee_ids=tuple(task.assignee_ids),
            task_id=task.id,
            phase_id=task.phase_id,
        ))
    elif action == Action.reject:
        task.rejection_reason = reason
        task.completed_at = None
        events.append(NotificationEvent(
            type=EventType.TASK_REJECTED,
            message=f'Your task "{task.name}" was rejected: {reason}',
            project_id=task.site_id,
            employee_ids=tuple(task.assignee_ids),
            task_id=task.id,
            phase_id=task.phase_id,
        ))

    prev = task.status
    task.status = target
    task.updated_at = now
    logger.info("task_transition", task_id=task.id, action=action.value, old=prev, new=target, actor_id=actor.id)

    if action == Action.approve:
        flush_or_conflict(db, task_id=task.id)
        ready = readiness_event(db, task.phase_id)
        if ready is not None:
            events.append(ready)
    return events


def _check(task: Task, action: Action, actor: Employee, reason: str | None) -> str | None:
    authorize(actor, _OPS[action], task)
    if action == Action.reject:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")
    return reason


def transition_task(
    db: Session,
    task_id: int,
    action: Action,
    actor: Employee,
    reason: str | None = None,
    dispatcher=None,
) -> Outcome:
    if action in (Action.approve, Action.reject):
        authorize(actor, _OPS[action])
    task = _load(db, task_id)
    reason = _check(task, action, actor, reason)
    events = _apply(db, task, action, actor, reason)
    emit(db, dispatcher, events)
    commit_or_conflict(db, task_id=task.id, action=action.value)
    db.refresh(task)
    return Outcome(entity=task, message=_MESSAGES[action], events=events)


def start_task(db: Session, task_id: int, actor: Employee, dispatcher=None) -> Outcome:
    return transition_task(db, task_id, Action.start, actor, dispatcher=dispatcher)


def complete_task(db: Session, task_id: int, actor: Employee, dispatcher=None) -> Outcome:
    return transition_task(db, task_id, Action.complete, actor, dispatcher=dispatcher)


def approve_task(db: Session, task_id: int, actor: Employee, dispatcher=None) -> Outcome:
    return transition_task(db, task_id, Action.approve, actor, dispatcher=dispatcher)


def reject_task(db: Session, task_id: int, actor: Employee, reason: str | None, dispatcher=None) -> Outcome:
    return transition_task(db, task_id, Action.reject, actor, reason=reason, dispatcher=dispatcher)


def update_task(db: Session, task_id: int, data: TaskUpdate, actor: Employee, dispatcher=None) -> Outcome:
    """Field edits plus an optional status change routed through the edge table."""
    task = _load(db, task_id)
    authorize(actor, Op.task_update, task)
    changes = data.model_dump(exclude_unset=True)
    status = changes.pop("status", None)
    reason = changes.pop("reason", None)

    if not actor.is_admin:
        blocked = sorted(set(changes) - _EMPLOYEE_FIELDS)
        if blocked:
            raise Forbidden(f"Employees cannot change: {', '.join(blocked)}")
    nulls = [f for f in _REQUIRED_FIELDS if f in changes and changes[f] is None]
    if nulls:
        raise ValidationError(f"Fields cannot be null: {', '.join(nulls)}")
    ensure_editable(task.status, "Task")

    action = None
    if status is not None and status != task.status:
        action = action_for(TASK_EDGES, task.status, status)
        reason = _check(task, action, actor, reason)

    if "name" in changes and not (changes["name"] or "").strip():
        raise ValidationError("Task name cannot be empty")
    for field, value in changes.items():
        setattr(task, field, value.strip() if field == "name" else value)
    task.updated_at = utcnow()

    events: list[NotificationEvent] = []
    if action is not None:
        events = _apply(db, task, action, actor, reason)
    emit(db, dispatcher, events)
    commit_or_conflict(db, task_id=task.id, action="update")
    db.refresh(task)
    return Outcome(entity=task, message=_MESSAGES[action] if action else "Task updated", events=events)


def toggle_assignment(db: Session, task_id: int, employee_id: int, actor: Employee) -> tuple[Task, bool]:
    authorize(actor, Op.task_assign)
    task = _load(db, task_id)
    if task.status == "Completed":
        raise InvalidState("Cannot change assignment of a completed task")
    emp = db.get(Employee, employee_id)
    if emp is None:
        raise NotFound("Employee not found")

    if emp in task.assignees:
        task.assignees.remove(emp)
        assigned = False
    else:
        task.assignees.append(emp)
        assigned = True
    task.updated_at = utcnow()
    commit_or_conflict(db, task_id=task.id, action="assign")
    db.refresh(task)
    logger.info("task_assignment_toggled", task_id=task.id, employee_id=emp.id, assigned=assigned, actor_id=actor.id)
    return task, assigned


def visible_tasks(db: Session, actor: Employee, status: str | None = None, site_id: int | None = None) -> list[Task]:
    """Work inbox: employees see the tasks they are assigned to, admins see all."""
    return list_tasks(db, assignee_id=None if actor.is_admin else actor.id, status=status, site_id=site_id)
