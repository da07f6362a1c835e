from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from sitework.core.deps import get_db, require_roles
from sitework.db.models.employee import Role
from sitework.schemas.admin import EmployeeCreateIn
from sitework.schemas.auth import UserOut
from sitework.crud.employees import create_employee, get_employee_by_login, list_employees

router = APIRouter()

@router.get("/employees", response_model=list[UserOut])
def employees(role: Role | None = None, db: Session = Depends(get_db), _user=Depends(require_roles(Role.admin))):
    rows = list_employees(db, role.value if role else None)
    return [UserOut(id=e.id, login=e.login, full_name=e.full_name, role=e.role) for e in rows]

@router.post("/employees", response_model=UserOut)
def create_employee_endpoint(data: EmployeeCreateIn, db: Session = Depends(get_db), _user=Depends(require_roles(Role.admin))):
    if get_employee_by_login(db, data.login):
        raise HTTPException(status_code=409, detail="Login already taken")
    e = create_employee(db, data)
    return UserOut(id=e.id, login=e.login, full_name=e.full_name, role=e.role)
