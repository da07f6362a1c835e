from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sitework.core.deps import get_db, get_current_user, require_roles
from sitework.db.models.employee import Role
from sitework.schemas.milestones import MilestoneActionOut, MilestoneCreate, MilestoneOut, MilestoneUpdate
from sitework.services.milestones import (
    create_milestone,
    delete_milestone,
    get_milestone,
    milestone_view,
    update_milestone,
)

router = APIRouter()


@router.post("", response_model=MilestoneActionOut, status_code=201)
def post_milestone(data: MilestoneCreate, db: Session = Depends(get_db), user=Depends(require_roles(Role.admin))):
    m = create_milestone(db, data, user)
    return MilestoneActionOut(message="Milestone created", milestone=MilestoneOut(**milestone_view(db, m)))


@router.get("/{milestone_id}", response_model=MilestoneOut)
def get_milestone_endpoint(milestone_id: int, db: Session = Depends(get_db), _user=Depends(get_current_user)):
    return MilestoneOut(**milestone_view(db, get_milestone(db, milestone_id)))


@router.put("/{milestone_id}", response_model=MilestoneActionOut)
def put_milestone(
    milestone_id: int,
    data: MilestoneUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_roles(Role.admin)),
):
    m = update_milestone(db, milestone_id, data, user)
    return MilestoneActionOut(message="Milestone updated", milestone=MilestoneOut(**milestone_view(db, m)))


@router.delete("/{milestone_id}")
def delete_milestone_endpoint(milestone_id: int, db: Session = Depends(get_db), user=Depends(require_roles(Role.admin))):
    unlinked = delete_milestone(db, milestone_id, user)
    return {"message": "Milestone deleted", "unlinked_phases": unlinked}
