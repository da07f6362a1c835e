"""Single capability check used by every mutating service function.

Routers still gate coarse access with ``require_roles``; services call
``authorize`` so the same rules hold when they are invoked directly.
"""
from enum import Enum

from sitework.core.errors import Forbidden
from sitework.db.models.employee import Employee, Role


class Op(str, Enum):
    task_create = "task.create"
    task_update = "task.update"
    task_start = "task.start"
    task_complete = "task.complete"
    task_approve = "task.approve"
    task_reject = "task.reject"
    task_assign = "task.assign"

    phase_create = "phase.create"
    phase_update = "phase.update"
    phase_start = "phase.start"
    phase_complete = "phase.complete"
    phase_approve = "phase.approve"
    phase_reject = "phase.reject"
    phase_set_budget = "phase.set_budget"

    site_write = "site.write"
    transaction_create = "transaction.create"

    material_create = "material.create"
    material_set_status = "material.set_status"
    material_receive = "material.receive"

    milestone_write = "milestone.write"


ADMIN = frozenset({Role.admin.value})
ANYONE = frozenset({Role.admin.value, Role.employee.value})
EMPLOYEE = frozenset({Role.employee.value})

RULES: dict[Op, frozenset[str]] = {
    Op.task_create: ADMIN,
    Op.task_update: ANYONE,
    Op.task_start: ANYONE,
    Op.task_complete: ANYONE,
    Op.task_approve: ADMIN,
    Op.task_reject: ADMIN,
    Op.task_assign: ADMIN,
    Op.phase_create: ADMIN,
    Op.phase_update: ANYONE,
    Op.phase_start: ANYONE,
    Op.phase_complete: ANYONE,
    Op.phase_approve: ADMIN,
    Op.phase_reject: ADMIN,
    Op.phase_set_budget: ADMIN,
    Op.site_write: ADMIN,
    Op.transaction_create: ADMIN,
    Op.material_create: EMPLOYEE,
    Op.material_set_status: ADMIN,
    Op.material_receive: ANYONE,
    Op.milestone_write: ADMIN,
}

# employees may only touch tasks they are assigned to
_ASSIGNMENT_BOUND = {Op.task_update, Op.task_start, Op.task_complete}

_MESSAGES = {
    Op.task_approve: "Only admin can approve tasks",
    Op.task_reject: "Only admin can reject tasks",
    Op.phase_approve: "Only admin can approve stages",
    Op.phase_reject: "Only admin can reject stages",
    Op.transaction_create: "Only admins can add transactions",
    Op.phase_set_budget: "Only admins can update budgets",
    Op.material_set_status: "Only admin can approve/reject requests",
    Op.material_create: "Only employees can request materials",
}


def _role(actor: Employee) -> str:
    return actor.role.value if hasattr(actor.role, "value") else str(actor.role)


def authorize(actor: Employee, op: Op, entity=None) -> None:
    role = _role(actor)
    if role not in RULES[op]:
        raise Forbidden(_MESSAGES.get(op, "You are not allowed to perform this action"))
    if role == Role.employee.value and op in _ASSIGNMENT_BOUND and entity is not None:
        if actor.id not in entity.assignee_ids:
            raise Forbidden("You are not assigned to this task")
