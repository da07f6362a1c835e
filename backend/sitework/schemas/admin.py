from pydantic import BaseModel, Field

from sitework.db.models.employee import Role

class EmployeeCreateIn(BaseModel):
    login: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=6, max_length=128)
    role: Role = Role.employee
    full_name: str | None = None
    phone: str | None = None
