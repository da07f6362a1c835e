import pytest

from sitework.core.errors import Forbidden, InvalidState, InvalidTransition, NotFound, ValidationError
from sitework.db.models.material_request import MaterialRequest
from sitework.db.models.notification import Notification
from sitework.db.models.site import Site
from sitework.schemas.materials import MaterialRequestIn, MaterialStatusIn
from sitework.services.materials import create_request, list_requests, mark_received, set_status


@pytest.fixture
def task(phase, make_task, worker):
    return make_task(phase, assignees=[worker])


def _request(site, task, **kw):
    data = dict(site_id=site.id, task_id=task.id, material_name="Cement", quantity=40, notes="Grade 42.5")
    data.update(kw)
    return MaterialRequestIn(**data)


def test_create_request_notifies_admins(db, admin, worker, site, task, dispatcher):
    out = create_request(db, _request(site, task), worker, dispatcher)
    req = out.entity
    assert req.status == "Pending"
    assert req.quantity == "40"
    assert req.employee_id == worker.id
    [note] = db.query(Notification).filter(Notification.type == "MATERIAL_REQUEST").all()
    assert note.employee_id == admin.id
    assert note.project_id == site.id


def test_task_is_required(db, worker, site, task):
    with pytest.raises(ValidationError, match="task selection"):
        create_request(db, _request(site, task, task_id=None), worker)
    assert db.query(MaterialRequest).count() == 0


def test_admin_cannot_request(db, admin, site, task):
    with pytest.raises(Forbidden):
        create_request(db, _request(site, task), admin)


def test_task_must_be_on_site(db, worker, site, task):
    other = Site(name="Other")
    db.add(other)
    db.commit()
    with pytest.raises(ValidationError):
        create_request(db, _request(other, task), worker)
    with pytest.raises(NotFound):
        create_request(db, _request(site, task, task_id=999), worker)


def test_approve_then_receive(db, admin, worker, site, task, dispatcher):
    req = create_request(db, _request(site, task), worker).entity

    with pytest.raises(InvalidState, match="Approved before receiving"):
        mark_received(db, req.id, worker)

    out = set_status(db, req.id, MaterialStatusIn(status="Approved", admin_notes="Deliver Monday"), admin, dispatcher)
    assert out.entity.status == "Approved"
    assert out.entity.admin_notes == "Deliver Monday"
    [update] = db.query(Notification).filter(Notification.type == "MATERIAL_UPDATE").all()
    assert update.employee_id == worker.id

    out = mark_received(db, req.id, worker, dispatcher)
    assert out.entity.status == "Received"
    [received] = db.query(Notification).filter(Notification.type == "MATERIAL_RECEIVED").all()
    assert received.employee_id == admin.id

    with pytest.raises(InvalidState):
        mark_received(db, req.id, worker)


def test_decisions_only_from_pending(db, admin, worker, site, task):
    req = create_request(db, _request(site, task), worker).entity
    set_status(db, req.id, MaterialStatusIn(status="Rejected"), admin)
    with pytest.raises(InvalidTransition):
        set_status(db, req.id, MaterialStatusIn(status="Approved"), admin)
    with pytest.raises(InvalidState):
        mark_received(db, req.id, worker)


def test_status_value_checked(db, admin, worker, site, task):
    req = create_request(db, _request(site, task), worker).entity
    with pytest.raises(ValidationError):
        set_status(db, req.id, MaterialStatusIn(status="Received"), admin)
    with pytest.raises(Forbidden):
        set_status(db, req.id, MaterialStatusIn(status="Approved"), worker)
    db.refresh(req)
    assert req.status == "Pending"


def test_listing_is_role_scoped(db, admin, worker, other_worker, site, phase, make_task):
    task = make_task(phase, assignees=[worker, other_worker])
    create_request(db, _request(site, task), worker)
    create_request(db, _request(site, task, material_name="Sand"), other_worker)

    assert [r.material_name for r in list_requests(db, worker)] == ["Cement"]
    assert [r.material_name for r in list_requests(db, other_worker, site.id)] == ["Sand"]
    assert len(list_requests(db, admin, site.id)) == 2
    assert list_requests(db, admin, 999) == []
