from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from sitework.core.deps import get_db, require_roles
from sitework.crud.phases import pending_approvals
from sitework.db.models.employee import Role
from sitework.schemas.tasks import ApprovalMaterialRow, ApprovalPhaseRow, ApprovalsOut, ApprovalTaskRow

router = APIRouter()


@router.get("", response_model=ApprovalsOut)
def get_approvals(db: Session = Depends(get_db), _user=Depends(require_roles(Role.admin))):
    tasks, phases, materials = pending_approvals(db)
    return ApprovalsOut(
        tasks=[
            ApprovalTaskRow(
                id=t.id,
                name=t.name,
                site_id=t.site_id,
                site_name=site_name,
                phase_id=t.phase_id,
                phase_name=phase_name,
                submitted_by=t.submitted_by,
                submitted_at=t.submitted_at,
            )
            for t, site_name, phase_name in tasks
        ],
        phases=[
            ApprovalPhaseRow(
                id=p.id,
                name=p.name,
                site_id=p.site_id,
                site_name=site_name,
                submitted_by=p.submitted_by,
                submitted_at=p.submitted_at,
            )
            for p, site_name in phases
        ],
        materials=[
            ApprovalMaterialRow(
                id=r.id,
                site_id=r.site_id,
                site_name=site_name,
                task_id=r.task_id,
                employee_id=r.employee_id,
                material_name=r.material_name,
                quantity=r.quantity,
                created_at=r.created_at,
            )
            for r, site_name in materials
        ],
    )
