"""Notification contract.

Workflow services never write notifications themselves: they return
``NotificationEvent`` objects alongside the changed entity (``Outcome``) and,
when given a dispatcher, hand the events over inside the same DB transaction
as the state change. Storage here is the default sink; delivery (push, mail)
is somebody else's job.
"""
import datetime as dt
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session

from sitework.core.logging import logger
from sitework.db.models.employee import Employee, Role
from sitework.db.models.notification import Notification
from sitework.services.dates import utcnow


class EventType:
    MATERIAL_REQUEST = "MATERIAL_REQUEST"
    MATERIAL_UPDATE = "MATERIAL_UPDATE"
    MATERIAL_RECEIVED = "MATERIAL_RECEIVED"
    TASK_SUBMITTED = "TASK_SUBMITTED"
    TASK_APPROVED = "TASK_APPROVED"
    TASK_REJECTED = "TASK_REJECTED"
    PHASE_SUBMITTED = "PHASE_SUBMITTED"
    PHASE_APPROVED = "PHASE_APPROVED"
    PHASE_REJECTED = "PHASE_REJECTED"
    MILESTONE_READY = "MILESTONE_READY"


@dataclass(frozen=True)
class NotificationEvent:
    type: str
    message: str
    project_id: int | None
    employee_ids: tuple[int, ...]
    task_id: int | None = None
    phase_id: int | None = None
    created_at: dt.datetime = field(default_factory=utcnow)

    def records(self) -> list[dict[str, Any]]:
        return [
            dict(
                project_id=self.project_id,
                employee_id=employee_id,
                task_id=self.task_id,
                phase_id=self.phase_id,
                type=self.type,
                message=self.message,
                is_read=False,
                created_at=self.created_at,
            )
            for employee_id in self.employee_ids
        ]


@dataclass
class Outcome:
    entity: Any
    message: str
    events: list[NotificationEvent] = field(default_factory=list)


def admin_ids(db: Session) -> tuple[int, ...]:
    rows = (
        db.query(Employee.id)
        .filter(Employee.role == Role.admin.value, Employee.is_active.is_(True))
        .order_by(Employee.id)
        .all()
    )
    return tuple(r.id for r in rows)


class DatabaseDispatcher:
    """Persists one ``Notification`` row per recipient; the caller commits."""

    def dispatch(self, db: Session, events: list[NotificationEvent]) -> int:
        count = 0
        for event in events:
            for rec in event.records():
                db.add(Notification(**rec))
                count += 1
            logger.info("notification_emitted", type=event.type, recipients=len(event.employee_ids))
        return count


def emit(db: Session, dispatcher, events: list[NotificationEvent]) -> None:
    if dispatcher is not None and events:
        dispatcher.dispatch(db, events)


def list_notifications(db: Session, employee_id: int, unread_only: bool = False, limit: int = 100):
    q = db.query(Notification).filter(Notification.employee_id == employee_id)
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_read(db: Session, notification_id: int, employee_id: int) -> Notification | None:
    n = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.employee_id == employee_id)
        .one_or_none()
    )
    if n is None:
        return None
    n.is_read = True
    db.commit()
    db.refresh(n)
    return n
