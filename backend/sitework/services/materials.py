"""Material requests: Pending -> Approved | Rejected, Approved -> Received."""
from sqlalchemy.orm import Session, joinedload

from sitework.core.errors import InvalidState, InvalidTransition, NotFound, ValidationError
from sitework.core.logging import logger
from sitework.db.models.employee import Employee
from sitework.db.models.material_request import MaterialRequest, MaterialStatus
from sitework.db.models.site import Site
from sitework.db.models.task import Task
from sitework.schemas.materials import MaterialRequestIn, MaterialStatusIn
from sitework.services.notifications import EventType, NotificationEvent, Outcome, admin_ids, emit
from sitework.services.permissions import Op, authorize
from sitework.services.workflow import commit_or_conflict

_DECISIONS = {MaterialStatus.approved.value, MaterialStatus.rejected.value}


def _load(db: Session, request_id: int) -> MaterialRequest:
    req = db.get(MaterialRequest, request_id)
    if req is None:
        raise NotFound("Material request not found")
    return req


def material_view(req: MaterialRequest) -> dict:
    return dict(
        id=req.id,
        site_id=req.site_id,
        site_name=req.site.name if req.site else None,
        task_id=req.task_id,
        task_name=req.task.name if req.task else None,
        employee_id=req.employee_id,
        requested_by=req.employee.full_name if req.employee else None,
        material_name=req.material_name,
        quantity=req.quantity,
        notes=req.notes,
        status=req.status,
        admin_notes=req.admin_notes,
        created_at=req.created_at,
        updated_at=req.updated_at,
    )


def create_request(db: Session, data: MaterialRequestIn, actor: Employee, dispatcher=None) -> Outcome:
    authorize(actor, Op.material_create)
    name = (data.material_name or "").strip()
    quantity = (data.quantity or "").strip()
    if not data.site_id or not data.task_id or not name or not quantity:
        raise ValidationError("Missing required fields (including task selection)")

    site = db.get(Site, data.site_id)
    if site is None:
        raise NotFound("Site not found")
    task = db.get(Task, data.task_id)
    if task is None:
        raise NotFound("Task not found")
    if task.site_id != site.id:
        raise ValidationError("Task does not belong to this site")

    req = MaterialRequest(
        site_id=site.id,
        task_id=task.id,
        employee_id=actor.id,
        material_name=name,
        quantity=quantity,
        notes=data.notes,
        status=MaterialStatus.pending.value,
    )
    db.add(req)
    db.flush()

    requester = actor.full_name or actor.login
    events = [NotificationEvent(
        type=EventType.MATERIAL_REQUEST,
        message=f"{requester} requested {quantity} of {name} for {site.name}",
        project_id=site.id,
        employee_ids=admin_ids(db),
        task_id=task.id,
    )]
    emit(db, dispatcher, events)
    db.commit()
    db.refresh(req)
    logger.info("material_requested", request_id=req.id, site_id=site.id, task_id=task.id, actor_id=actor.id)
    return Outcome(entity=req, message="Material request submitted", events=events)


def set_status(db: Session, request_id: int, data: MaterialStatusIn, actor: Employee, dispatcher=None) -> Outcome:
    authorize(actor, Op.material_set_status)
    status = (data.status or "").strip().capitalize()
    if status not in _DECISIONS:
        raise ValidationError("Status must be Approved or Rejected")
    req = _load(db, request_id)
    if req.status != MaterialStatus.pending.value:
        raise InvalidTransition(f"Only pending requests can be {status.lower()} (current status: {req.status})")

    prev = req.status
    req.status = status
    req.admin_notes = data.admin_notes
    note = f" ({data.admin_notes})" if data.admin_notes else ""
    events = [NotificationEvent(
        type=EventType.MATERIAL_UPDATE,
        message=f"Your request for {req.material_name} was {status.lower()}{note}",
        project_id=req.site_id,
        employee_ids=(req.employee_id,),
        task_id=req.task_id,
    )]
    emit(db, dispatcher, events)
    commit_or_conflict(db, request_id=req.id, action="set_status")
    db.refresh(req)
    logger.info("material_status_changed", request_id=req.id, old=prev, new=status, actor_id=actor.id)
    return Outcome(entity=req, message=f"Request {status.lower()}", events=events)


def mark_received(db: Session, request_id: int, actor: Employee, dispatcher=None) -> Outcome:
    authorize(actor, Op.material_receive)
    req = _load(db, request_id)
    if req.status != MaterialStatus.approved.value:
        raise InvalidState("Material must be Approved before receiving")

    req.status = MaterialStatus.received.value
    who = actor.full_name or actor.login
    events = [NotificationEvent(
        type=EventType.MATERIAL_RECEIVED,
        message=f"{who} marked {req.material_name} as received",
        project_id=req.site_id,
        employee_ids=admin_ids(db),
        task_id=req.task_id,
    )]
    emit(db, dispatcher, events)
    commit_or_conflict(db, request_id=req.id, action="received")
    db.refresh(req)
    logger.info("material_received", request_id=req.id, actor_id=actor.id)
    return Outcome(entity=req, message="Material marked as received", events=events)


def list_requests(db: Session, actor: Employee, site_id: int | None = None) -> list[MaterialRequest]:
    """Employees only ever see their own requests; admins see everything in scope."""
    q = db.query(MaterialRequest).options(
        joinedload(MaterialRequest.site),
        joinedload(MaterialRequest.task),
        joinedload(MaterialRequest.employee),
    )
    if site_id is not None:
        q = q.filter(MaterialRequest.site_id == site_id)
    if not actor.is_admin:
        q = q.filter(MaterialRequest.employee_id == actor.id)
    return q.order_by(MaterialRequest.created_at.desc(), MaterialRequest.id.desc()).all()
