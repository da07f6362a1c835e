"""Approval state machine shared by tasks and phases.

The edge tables are plain data so they can be inspected and tested without a
database. ``next_status`` is the only place a target status is decided.
"""
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from sitework.core.errors import InvalidTransition, InvalidState, Conflict
from sitework.core.logging import logger
from sitework.db.models.task import TaskStatus
from sitework.db.models.phase import PhaseStatus


class Action(str, Enum):
    start = "start"
    complete = "complete"
    approve = "approve"
    reject = "reject"


@dataclass(frozen=True)
class Edge:
    sources: frozenset[str]
    target: str


TASK_EDGES: dict[Action, Edge] = {
    Action.start: Edge(frozenset({TaskStatus.not_started.value, TaskStatus.rejected.value}), TaskStatus.in_progress.value),
    Action.complete: Edge(frozenset({TaskStatus.in_progress.value}), TaskStatus.waiting_approval.value),
    Action.approve: Edge(frozenset({TaskStatus.waiting_approval.value}), TaskStatus.completed.value),
    Action.reject: Edge(frozenset({TaskStatus.waiting_approval.value}), TaskStatus.in_progress.value),
}

PHASE_EDGES: dict[Action, Edge] = {
    Action.start: Edge(frozenset({PhaseStatus.not_started.value, PhaseStatus.rejected.value}), PhaseStatus.in_progress.value),
    Action.complete: Edge(frozenset({PhaseStatus.in_progress.value}), PhaseStatus.waiting_approval.value),
    Action.approve: Edge(frozenset({PhaseStatus.waiting_approval.value}), PhaseStatus.completed.value),
    Action.reject: Edge(frozenset({PhaseStatus.waiting_approval.value}), PhaseStatus.rejected.value),
}

_FAILURES = {
    Action.start: "can only be started from Not Started or Rejected",
    Action.complete: "must be In Progress to be submitted for approval",
    Action.approve: "is not waiting for approval",
    Action.reject: "is not waiting for approval",
}

COMPLETED = "Completed"


def next_status(edges: dict[Action, Edge], current: str, action: Action, label: str = "Item") -> str:
    edge = edges[action]
    if current not in edge.sources:
        raise InvalidTransition(f"{label} {_FAILURES[action]} (current status: {current})")
    return edge.target


def action_for(edges: dict[Action, Edge], current: str, target: str) -> Action:
    """Map a requested status change onto the edge that performs it."""
    for action, edge in edges.items():
        if current in edge.sources and edge.target == target:
            return action
    raise InvalidTransition(f"Cannot change status from {current} to {target}")


def ensure_editable(current: str, label: str = "Item") -> None:
    if current == COMPLETED:
        raise InvalidState(f"Completed {label.lower()}s cannot be modified")


def flush_or_conflict(db: Session, **log_ctx) -> None:
    try:
        db.flush()
    except StaleDataError:
        db.rollback()
        logger.warning("transition_conflict", **log_ctx)
        raise Conflict()


def commit_or_conflict(db: Session, **log_ctx) -> None:
    """Commit the unit of work; a lost optimistic-lock race becomes ``Conflict``."""
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning("transition_conflict", **log_ctx)
        raise Conflict()
