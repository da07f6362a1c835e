import datetime as dt
from pydantic import BaseModel, ConfigDict


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int | None = None
    employee_id: int
    task_id: int | None = None
    phase_id: int | None = None
    type: str
    message: str
    is_read: bool
    created_at: dt.datetime | None = None


class NotificationListOut(BaseModel):
    message: str = "ok"
    notifications: list[NotificationOut]
