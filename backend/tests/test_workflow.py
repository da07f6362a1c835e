import datetime as dt
from types import SimpleNamespace

import pytest

from sitework.core.errors import Forbidden, InvalidState, InvalidTransition
from sitework.db.models.employee import Employee
from sitework.services.dates import coerce_date, is_delayed
from sitework.services.milestones import compute_progress
from sitework.services.permissions import Op, authorize
from sitework.services.workflow import (
    PHASE_EDGES,
    TASK_EDGES,
    Action,
    action_for,
    ensure_editable,
    next_status,
)


def test_task_edges():
    assert next_status(TASK_EDGES, "Not Started", Action.start) == "In Progress"
    assert next_status(TASK_EDGES, "Rejected", Action.start) == "In Progress"
    assert next_status(TASK_EDGES, "In Progress", Action.complete) == "Waiting Approval"
    assert next_status(TASK_EDGES, "Waiting Approval", Action.approve) == "Completed"
    assert next_status(TASK_EDGES, "Waiting Approval", Action.reject) == "In Progress"


def test_phase_reject_goes_to_rejected():
    assert next_status(PHASE_EDGES, "Waiting Approval", Action.reject) == "Rejected"
    assert next_status(PHASE_EDGES, "Rejected", Action.start) == "In Progress"


@pytest.mark.parametrize("current,action", [
    ("Not Started", Action.complete),
    ("Not Started", Action.approve),
    ("In Progress", Action.approve),
    ("In Progress", Action.start),
    ("Completed", Action.approve),
    ("Completed", Action.reject),
    ("Waiting Approval", Action.start),
])
def test_illegal_edges(current, action):
    with pytest.raises(InvalidTransition):
        next_status(TASK_EDGES, current, action, "Task")


def test_action_for_maps_status_change():
    assert action_for(TASK_EDGES, "In Progress", "Waiting Approval") == Action.complete
    assert action_for(TASK_EDGES, "Waiting Approval", "In Progress") == Action.reject
    with pytest.raises(InvalidTransition):
        action_for(TASK_EDGES, "Not Started", "Completed")


def test_completed_is_frozen():
    ensure_editable("In Progress", "Task")
    with pytest.raises(InvalidState):
        ensure_editable("Completed", "Task")


def test_authorize_roles():
    boss = Employee(id=1, login="boss", role="admin")
    ali = Employee(id=2, login="ali", role="employee")
    task = SimpleNamespace(assignee_ids=[2])

    authorize(boss, Op.task_approve)
    authorize(ali, Op.task_start, task)
    with pytest.raises(Forbidden, match="Only admin can approve tasks"):
        authorize(ali, Op.task_approve)
    with pytest.raises(Forbidden, match="not assigned"):
        authorize(ali, Op.task_complete, SimpleNamespace(assignee_ids=[7]))
    with pytest.raises(Forbidden):
        authorize(boss, Op.material_create)
    authorize(boss, Op.material_receive)


@pytest.mark.parametrize("total,completed,expected", [
    (0, 0, 0),
    (10, 5, 50),
    (8, 1, 13),
    (3, 2, 67),
    (3, 1, 33),
    (200, 1, 1),
    (4, 4, 100),
])
def test_compute_progress(total, completed, expected):
    assert compute_progress(total, completed) == expected


def test_is_delayed():
    today = dt.date(2026, 5, 10)
    assert is_delayed(dt.date(2026, 5, 9), "In Progress", today)
    assert not is_delayed(dt.date(2026, 5, 10), "In Progress", today)
    assert not is_delayed(dt.date(2026, 5, 9), "Completed", today)
    assert not is_delayed(None, "Not Started", today)


def test_coerce_date_formats():
    assert coerce_date("2026-03-15") == dt.date(2026, 3, 15)
    assert coerce_date("2026-03-15T08:30:00Z") == dt.date(2026, 3, 15)
    assert coerce_date("15/03/2026") == dt.date(2026, 3, 15)
    assert coerce_date("") is None
    assert coerce_date("null") is None
    with pytest.raises(ValueError):
        coerce_date("next week")
