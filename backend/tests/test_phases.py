import datetime as dt

import pytest

from sitework.core.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from sitework.db.models.notification import Notification
from sitework.db.models.phase import Phase
from sitework.schemas.tasks import PhaseCreate, PhaseUpdate
from sitework.services.phases import (
    approve_phase,
    complete_phase,
    create_phase,
    phase_views,
    reject_phase,
    start_phase,
    update_phase,
)


def test_create_phase(db, admin, site):
    phase = create_phase(db, PhaseCreate(site_id=site.id, name="Structure", order_num=2, budget="2500.50"), admin)
    assert phase.status == "Not Started"
    assert str(phase.budget) == "2500.50"
    with pytest.raises(NotFound):
        create_phase(db, PhaseCreate(site_id=999, name="x"), admin)


def test_phase_lifecycle(db, admin, worker, phase, dispatcher):
    start_phase(db, phase.id, worker, dispatcher)
    out = complete_phase(db, phase.id, worker, dispatcher)
    assert out.entity.status == "Waiting Approval"
    assert out.entity.submitted_by == worker.id

    out = approve_phase(db, phase.id, admin, dispatcher)
    assert out.entity.status == "Completed"
    types = {(n.type, n.employee_id) for n in db.query(Notification).all()}
    assert ("PHASE_SUBMITTED", admin.id) in types
    assert ("PHASE_APPROVED", worker.id) in types


def test_rejected_phase_can_restart(db, admin, worker, phase):
    phase.status = "Waiting Approval"
    db.commit()
    out = reject_phase(db, phase.id, admin, "Formwork misaligned")
    assert out.entity.status == "Rejected"
    assert out.entity.rejection_reason == "Formwork misaligned"
    out = start_phase(db, phase.id, worker)
    assert out.entity.status == "In Progress"


def test_employee_cannot_approve_phase(db, worker, phase):
    phase.status = "Waiting Approval"
    db.commit()
    with pytest.raises(Forbidden):
        approve_phase(db, phase.id, worker)
    with pytest.raises(Forbidden):
        reject_phase(db, phase.id, worker, "no")
    db.refresh(phase)
    assert phase.status == "Waiting Approval"


def test_phase_reject_needs_reason(db, admin, phase):
    phase.status = "Waiting Approval"
    db.commit()
    with pytest.raises(ValidationError):
        reject_phase(db, phase.id, admin, None)


def test_update_phase(db, admin, worker, phase):
    out = update_phase(db, phase.id, PhaseUpdate(name="Deep foundation", status="In Progress"), admin)
    assert out.entity.name == "Deep foundation"
    assert out.entity.status == "In Progress"
    with pytest.raises(Forbidden):
        update_phase(db, phase.id, PhaseUpdate(name="Mine now"), worker)
    with pytest.raises(InvalidTransition):
        update_phase(db, phase.id, PhaseUpdate(status="Completed"), admin)


def test_phase_views(db, site, phase, make_task):
    late = Phase(site_id=site.id, name="Finishing", order_num=3, planned_end_date=dt.date(2000, 1, 1))
    db.add(late)
    db.commit()
    make_task(phase, status="Completed")
    make_task(phase)

    views = {v["id"]: v for v in phase_views(db, [phase, late])}
    assert views[phase.id]["total_tasks"] == 2
    assert views[phase.id]["completed_tasks"] == 1
    assert views[phase.id]["is_delayed"] is False
    assert views[late.id]["is_delayed"] is True
    assert views[late.id]["total_tasks"] == 0
    # derived only
    db.refresh(late)
    assert late.status == "Not Started"
