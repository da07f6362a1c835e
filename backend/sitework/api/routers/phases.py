from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sitework.api.views import task_out, usage_out
from sitework.core.deps import get_db, get_current_user, get_dispatcher, require_roles
from sitework.crud.phases import task_counts
from sitework.db.models.employee import Role
from sitework.schemas.ledger import BudgetIn, PhaseUsageOut
from sitework.schemas.tasks import (
    PhaseActionOut,
    PhaseCreate,
    PhaseDetailOut,
    PhaseOut,
    PhaseUpdate,
    RejectIn,
)
from sitework.services.budget import phase_usage, set_phase_budget
from sitework.services.notifications import DatabaseDispatcher, Outcome
from sitework.services.phases import (
    approve_phase,
    complete_phase,
    create_phase,
    phase_tasks,
    phase_view,
    reject_phase,
    start_phase,
    update_phase,
)

router = APIRouter()


def _phase_out(db: Session, phase) -> PhaseOut:
    return PhaseOut(**phase_view(phase, task_counts(db, [phase.id])))


def _action_out(db: Session, outcome: Outcome) -> PhaseActionOut:
    return PhaseActionOut(message=outcome.message, phase=_phase_out(db, outcome.entity))


@router.post("", response_model=PhaseOut, status_code=201)
def post_phase(data: PhaseCreate, db: Session = Depends(get_db), user=Depends(require_roles(Role.admin))):
    return _phase_out(db, create_phase(db, data, user))


@router.get("/{phase_id}", response_model=PhaseDetailOut)
def get_phase(phase_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    phase, tasks = phase_tasks(db, phase_id)
    base = phase_view(phase, task_counts(db, [phase.id]))
    return PhaseDetailOut(**base, tasks=[task_out(t) for t in tasks])


@router.put("/{phase_id}", response_model=PhaseActionOut)
def put_phase(
    phase_id: int,
    data: PhaseUpdate,
    db: Session = Depends(get_db),
    dispatcher: DatabaseDispatcher = Depends(get_dispatcher),
    user=Depends(get_current_user),
):
    return _action_out(db, update_phase(db, phase_id, data, user, dispatcher))


@router.put("/{phase_id}/start", response_model=PhaseActionOut)
def put_start(phase_id: int, db: Session = Depends(get_db), dispatcher=Depends(get_dispatcher), user=Depends(get_current_user)):
    return _action_out(db, start_phase(db, phase_id, user, dispatcher))


@router.put("/{phase_id}/complete", response_model=PhaseActionOut)
def put_complete(phase_id: int, db: Session = Depends(get_db), dispatcher=Depends(get_dispatcher), user=Depends(get_current_user)):
    return _action_out(db, complete_phase(db, phase_id, user, dispatcher))


@router.put("/{phase_id}/approve", response_model=PhaseActionOut)
def put_approve(phase_id: int, db: Session = Depends(get_db), dispatcher=Depends(get_dispatcher), user=Depends(get_current_user)):
    return _action_out(db, approve_phase(db, phase_id, user, dispatcher))


@router.put("/{phase_id}/reject", response_model=PhaseActionOut)
def put_reject(
    phase_id: int,
    data: RejectIn,
    db: Session = Depends(get_db),
    dispatcher=Depends(get_dispatcher),
    user=Depends(get_current_user),
):
    return _action_out(db, reject_phase(db, phase_id, user, data.reason, dispatcher))


@router.put("/{phase_id}/budget", response_model=PhaseActionOut)
def put_budget(phase_id: int, data: BudgetIn, db: Session = Depends(get_db), user=Depends(get_current_user)):
    phase = set_phase_budget(db, phase_id, data.budget, user)
    return PhaseActionOut(message="Budget updated", phase=_phase_out(db, phase))


@router.get("/{phase_id}/usage", response_model=PhaseUsageOut)
def get_usage(phase_id: int, amount: Decimal | None = None, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    return usage_out(phase_usage(db, phase_id, amount))
