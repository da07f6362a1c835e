import datetime as dt
from pydantic import BaseModel, field_validator


class MaterialRequestIn(BaseModel):
    # presence is checked by the service so a missing field is a plain 400
    site_id: int | None = None
    task_id: int | None = None
    material_name: str | None = None
    quantity: str | None = None
    notes: str | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def _qty(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return f"{v:g}"
        return v


class MaterialStatusIn(BaseModel):
    status: str
    admin_notes: str | None = None


class MaterialRequestOut(BaseModel):
    id: int
    site_id: int
    site_name: str | None = None
    task_id: int | None = None
    task_name: str | None = None
    employee_id: int
    requested_by: str | None = None
    material_name: str
    quantity: str
    notes: str | None = None
    status: str
    admin_notes: str | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class MaterialActionOut(BaseModel):
    message: str
    request: MaterialRequestOut


class MaterialListOut(BaseModel):
    message: str = "ok"
    requests: list[MaterialRequestOut]
