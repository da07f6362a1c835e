import datetime as dt

import pytest

from sitework.core.errors import ValidationError
from sitework.db.models.milestone import Milestone
from sitework.db.models.notification import Notification
from sitework.db.models.phase import Phase
from sitework.db.models.site import Site
from sitework.schemas.milestones import MilestoneCreate, MilestoneUpdate
from sitework.services.milestones import (
    create_milestone,
    delete_milestone,
    milestone_view,
    update_milestone,
)
from sitework.services.phases import approve_phase
from sitework.services.tasks import approve_task


@pytest.fixture
def two_phases(db, site, make_task):
    a = Phase(site_id=site.id, name="Foundation", order_num=1)
    b = Phase(site_id=site.id, name="Structure", order_num=2)
    db.add_all([a, b])
    db.commit()
    for i in range(4):
        make_task(a, name=f"a{i}", status="Completed" if i < 2 else "In Progress")
    for i in range(6):
        make_task(b, name=f"b{i}", status="Completed" if i < 3 else "Not Started")
    return a, b


def test_progress_over_linked_phases(db, admin, site, two_phases):
    a, b = two_phases
    m = create_milestone(db, MilestoneCreate(site_id=site.id, name="Shell", phase_ids=[a.id, b.id]), admin)
    assert m.status == "Not Started"
    assert m.progress == 0

    view = milestone_view(db, m)
    assert view["progress"] == 50
    assert (view["total_tasks"], view["completed_tasks"]) == (10, 5)
    assert view["ready_for_completion"] is False
    # cached
    assert db.get(Milestone, m.id).progress == 50


def test_milestone_without_tasks(db, admin, site):
    m = create_milestone(db, MilestoneCreate(site_id=site.id, name="Empty"), admin)
    assert milestone_view(db, m)["progress"] == 0


def test_phases_must_share_site(db, admin, site, two_phases):
    other = Site(name="Other")
    db.add(other)
    db.commit()
    with pytest.raises(ValidationError):
        create_milestone(db, MilestoneCreate(site_id=other.id, name="x", phase_ids=[two_phases[0].id]), admin)
    assert db.query(Milestone).count() == 0


def test_delete_unlinks_phases(db, admin, site, two_phases):
    a, b = two_phases
    m = create_milestone(db, MilestoneCreate(site_id=site.id, name="Shell", phase_ids=[a.id, b.id]), admin)
    assert delete_milestone(db, m.id, admin) == 2
    assert db.get(Milestone, m.id) is None
    db.expire_all()
    assert db.get(Phase, a.id).milestone_id is None
    assert db.get(Phase, b.id).milestone_id is None


def test_update_relinks_and_stamps_completion(db, admin, site, two_phases):
    a, b = two_phases
    m = create_milestone(db, MilestoneCreate(site_id=site.id, name="Shell", phase_ids=[a.id]), admin)
    m = update_milestone(db, m.id, MilestoneUpdate(phase_ids=[b.id], delay_reason="Rain"), admin)
    db.expire_all()
    assert [p.id for p in db.get(Milestone, m.id).phases] == [b.id]
    assert db.get(Phase, a.id).milestone_id is None

    m = update_milestone(db, m.id, MilestoneUpdate(status="Completed"), admin)
    assert m.status == "Completed"
    assert m.actual_completion_date is not None
    assert m.delay_reason == "Rain"


def test_delay_flag_is_advisory(db, admin, site):
    m = create_milestone(
        db,
        MilestoneCreate(site_id=site.id, name="Handover", planned_start_date="01/01/2026", planned_end_date="2026-02-01"),
        admin,
    )
    view = milestone_view(db, m, today=dt.date(2026, 3, 1))
    assert view["is_delayed"] is True
    assert view["status"] == "Not Started"
    assert milestone_view(db, m, today=dt.date(2026, 1, 15))["is_delayed"] is False


def test_last_approval_flags_ready(db, admin, site, phase, make_task, dispatcher):
    make_task(phase, status="Completed")
    last = make_task(phase, status="Waiting Approval")
    m = create_milestone(db, MilestoneCreate(site_id=site.id, name="Base", phase_ids=[phase.id]), admin)

    out = approve_task(db, last.id, admin, dispatcher)
    assert [e.type for e in out.events] == ["TASK_APPROVED", "MILESTONE_READY"]
    [note] = db.query(Notification).filter(Notification.type == "MILESTONE_READY").all()
    assert note.employee_id == admin.id

    view = milestone_view(db, db.get(Milestone, m.id))
    assert view["progress"] == 100
    assert view["ready_for_completion"] is True
    assert view["status"] == "Not Started"


def test_phase_approval_does_not_repeat_readiness(db, admin, site, phase, make_task, dispatcher):
    last = make_task(phase, status="Waiting Approval")
    create_milestone(db, MilestoneCreate(site_id=site.id, name="Base", phase_ids=[phase.id]), admin)

    approve_task(db, last.id, admin, dispatcher)
    phase.status = "Waiting Approval"
    db.commit()
    out = approve_phase(db, phase.id, admin, dispatcher)

    assert [e.type for e in out.events] == ["PHASE_APPROVED"]
    assert db.query(Notification).filter(Notification.type == "MILESTONE_READY").count() == 1


def test_readiness_only_when_crossing_full(db, admin, site, phase, make_task, dispatcher):
    first = make_task(phase, name="a", status="Waiting Approval")
    second = make_task(phase, name="b", status="Waiting Approval")
    create_milestone(db, MilestoneCreate(site_id=site.id, name="Base", phase_ids=[phase.id]), admin)

    assert [e.type for e in approve_task(db, first.id, admin, dispatcher).events] == ["TASK_APPROVED"]
    assert [e.type for e in approve_task(db, second.id, admin, dispatcher).events] == ["TASK_APPROVED", "MILESTONE_READY"]


def test_update_checks_merged_dates(db, admin, site):
    m = create_milestone(
        db,
        MilestoneCreate(site_id=site.id, name="Handover", planned_start_date="2026-03-01", planned_end_date="2026-06-01"),
        admin,
    )
    with pytest.raises(ValidationError, match="before planned start"):
        update_milestone(db, m.id, MilestoneUpdate(name="Keys", planned_end_date="2026-02-01"), admin)
    db.refresh(m)
    assert (m.name, m.planned_end_date) == ("Handover", dt.date(2026, 6, 1))

    m = update_milestone(db, m.id, MilestoneUpdate(planned_start_date="01/05/2026"), admin)
    assert m.planned_start_date == dt.date(2026, 5, 1)
