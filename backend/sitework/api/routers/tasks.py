from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from sitework.api.views import task_out
from sitework.core.deps import get_db, get_current_user, get_dispatcher, require_roles
from sitework.crud.phases import get_task
from sitework.db.models.employee import Role
from sitework.db.models.task import TaskStatus
from sitework.schemas.tasks import AssignIn, AssignOut, RejectIn, TaskActionOut, TaskCreate, TaskOut, TaskUpdate
from sitework.services.notifications import Outcome
from sitework.services.tasks import (
    approve_task,
    complete_task,
    create_task,
    reject_task,
    start_task,
    toggle_assignment,
    update_task,
    visible_tasks,
)

router = APIRouter()


def _action_out(outcome: Outcome) -> TaskActionOut:
    return TaskActionOut(message=outcome.message, task=task_out(outcome.entity))


@router.post("", response_model=TaskOut, status_code=201)
def post_task(data: TaskCreate, db: Session = Depends(get_db), user=Depends(require_roles(Role.admin))):
    return task_out(create_task(db, data, user))


@router.get("", response_model=list[TaskOut])
def get_tasks(
    status: TaskStatus | None = None,
    site_id: int | None = None,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return [task_out(t) for t in visible_tasks(db, user, status.value if status else None, site_id)]


@router.get("/{task_id}", response_model=TaskOut)
def get_task_endpoint(task_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    t = get_task(db, task_id)
    if not t:
        raise HTTPException(status_code=404, detail="Task not found")
    return task_out(t)


@router.put("/{task_id}", response_model=TaskActionOut)
def put_task(
    task_id: int,
    data: TaskUpdate,
    db: Session = Depends(get_db),
    dispatcher=Depends(get_dispatcher),
    user=Depends(get_current_user),
):
    return _action_out(update_task(db, task_id, data, user, dispatcher))


@router.put("/{task_id}/start", response_model=TaskActionOut)
def put_start(task_id: int, db: Session = Depends(get_db), dispatcher=Depends(get_dispatcher), user=Depends(get_current_user)):
    return _action_out(start_task(db, task_id, user, dispatcher))


@router.put("/{task_id}/complete", response_model=TaskActionOut)
def put_complete(task_id: int, db: Session = Depends(get_db), dispatcher=Depends(get_dispatcher), user=Depends(get_current_user)):
    return _action_out(complete_task(db, task_id, user, dispatcher))


@router.put("/{task_id}/approve", response_model=TaskActionOut)
def put_approve(task_id: int, db: Session = Depends(get_db), dispatcher=Depends(get_dispatcher), user=Depends(get_current_user)):
    return _action_out(approve_task(db, task_id, user, dispatcher))


@router.put("/{task_id}/reject", response_model=TaskActionOut)
def put_reject(
    task_id: int,
    data: RejectIn,
    db: Session = Depends(get_db),
    dispatcher=Depends(get_dispatcher),
    user=Depends(get_current_user),
):
    return _action_out(reject_task(db, task_id, user, data.reason, dispatcher))


@router.put("/{task_id}/assign", response_model=AssignOut)
def put_assign(task_id: int, data: AssignIn, db: Session = Depends(get_db), user=Depends(get_current_user)):
    task, assigned = toggle_assignment(db, task_id, data.employee_id, user)
    return AssignOut(
        message="Employee assigned" if assigned else "Employee unassigned",
        task=task_out(task),
        assigned=assigned,
    )
