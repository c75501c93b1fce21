from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user
from models.users import User
from services import notification_service

router = APIRouter(prefix="/notifications", tags=["알림"])


# ✅ [READ] 내 알림 (최근 20건)
@router.get("/")
def my_notifications(unread_only: bool = False, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": notification_service.get_user_notifications(db, user.id, unread_only)}


# ✅ [READ] 안 읽은 알림 수
@router.get("/unread-count")
def unread_count(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": {"count": notification_service.get_unread_count(db, user.id)}}


# ✅ [UPDATE] 전체 읽음 처리
@router.post("/read-all")
def read_all(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    updated = notification_service.mark_all_as_read(db, user.id)
    return {"success": True, "data": {"updated": updated}}


# ✅ [UPDATE] 단건 읽음 처리
@router.post("/{notification_id}/read")
def read_one(notification_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    notification_service.mark_as_read(db, notification_id, user.id)
    return {"success": True, "data": {"notification_id": notification_id}}
