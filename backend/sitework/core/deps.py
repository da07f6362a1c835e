from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from sitework.db.session import SessionLocal
from sitework.core.config import settings
from sitework.core.security import decode_token
from sitework.db.models.employee import Employee, Role
from sitework.crud.employees import get_employee_by_login
from sitework.services.ledger import BudgetPolicy
from sitework.services.notifications import DatabaseDispatcher

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_current_user(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> Employee:
    try:
        payload = decode_token(token)
        login = payload.get("sub")
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    user = get_employee_by_login(db, login) if login else None
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found/disabled")
    return user

def require_roles(*roles: Role):
    def _dep(user: Employee = Depends(get_current_user)) -> Employee:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user
    return _dep

def get_dispatcher() -> DatabaseDispatcher:
    return DatabaseDispatcher()

def get_budget_policy() -> BudgetPolicy:
    return BudgetPolicy(settings.BUDGET_POLICY)
