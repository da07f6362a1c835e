from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from sitework.core.deps import get_db, get_current_user
from sitework.schemas.notifications import NotificationListOut, NotificationOut
from sitework.services.notifications import list_notifications, mark_read

router = APIRouter()


@router.get("", response_model=NotificationListOut)
def get_notifications(unread: bool = False, db: Session = Depends(get_db), user=Depends(get_current_user)):
    rows = list_notifications(db, user.id, unread_only=unread)
    return NotificationListOut(notifications=[NotificationOut.model_validate(n) for n in rows])


@router.put("/{notification_id}/read", response_model=NotificationOut)
def put_read(notification_id: int, db: Session = Depends(get_db), user=Depends(get_current_user)):
    n = mark_read(db, notification_id, user.id)
    if not n:
        raise HTTPException(status_code=404, detail="Notification not found")
    return NotificationOut.model_validate(n)
