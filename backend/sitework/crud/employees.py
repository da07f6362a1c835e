from sqlalchemy.orm import Session
from sitework.db.models.employee import Employee
from sitework.core.security import hash_password
from sitework.schemas.admin import EmployeeCreateIn

def get_employee_by_login(db: Session, login: str) -> Employee | None:
    return db.query(Employee).filter(Employee.login == login).one_or_none()

def list_employees(db: Session, role: str | None = None):
    q = db.query(Employee)
    if role:
        q = q.filter(Employee.role == role)
    return q.order_by(Employee.id).all()

def create_employee(db: Session, data: EmployeeCreateIn) -> Employee:
    e = Employee(
        login=data.login,
        password_hash=hash_password(data.password),
        role=data.role.value,
        full_name=data.full_name,
        phone=data.phone,
    )
    db.add(e)
    db.commit()
    db.refresh(e)
    return e
