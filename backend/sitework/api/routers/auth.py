from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from sitework.core.deps import get_db, get_current_user
from sitework.core.logging import logger
from sitework.schemas.auth import LoginIn, TokenOut, UserOut
from sitework.crud.employees import get_employee_by_login
from sitework.core.security import verify_password, create_access_token

router = APIRouter()

@router.post("/login", response_model=TokenOut)
def login(data: LoginIn, db: Session = Depends(get_db)):
    user = get_employee_by_login(db, data.login)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(data.password, user.password_hash):
        logger.info("login_failed", login=data.login)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    role = user.role.value if hasattr(user.role, "value") else str(user.role)
    token = create_access_token(sub=user.login, role=role)
    return TokenOut(access_token=token)

@router.get("/me", response_model=UserOut)
def me(user = Depends(get_current_user)):
    role = user.role.value if hasattr(user.role, "value") else str(user.role)
    return UserOut(id=user.id, login=user.login, full_name=user.full_name, role=role)
