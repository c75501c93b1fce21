"""
services/notification_service.py

- 사용자 알림 생성/조회/읽음 처리
- notify() 는 fire-and-forget: 실패해도 로그만 남기고 본 작업(수강/성적)은 계속 진행
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from config.settings import settings
from database.db import unit_of_work
from models.notifications import NotificationType
from repositories import notifications as notification_repo
from utils.errors import NotFoundError

logger = logging.getLogger(__name__)


def notify(
    db: Session,
    user_id: int,
    title: str,
    message: str,
    type_: NotificationType = NotificationType.SYSTEM,
    link: Optional[str] = None,
) -> None:
    if not settings.NOTIFICATIONS_ENABLED:
        return
    try:
        # SAVEPOINT 안에서 생성 → 실패해도 바깥 트랜잭션은 유지
        with db.begin_nested():
            notification_repo.create_notification(
                db,
                user_id=user_id,
                title=title,
                message=message,
                type=type_.value,
                link=link,
            )
    except Exception:
        logger.exception("알림 생성 실패 (무시하고 진행): user_id=%s title=%s", user_id, title)


def _to_item(n) -> dict:
    return {
        "id": n.id,
        "title": n.title,
        "message": n.message,
        "type": n.type,
        "is_read": n.is_read,
        "link": n.link,
        "created_at": n.created_at.isoformat(),
    }


def get_user_notifications(db: Session, user_id: int, unread_only: bool = False, limit: int = 20) -> List[dict]:
    rows = notification_repo.get_user_notifications(db, user_id, limit=limit, unread_only=unread_only)
    return [_to_item(n) for n in rows]


def get_unread_count(db: Session, user_id: int) -> int:
    return notification_repo.count_unread(db, user_id)


def mark_as_read(db: Session, notification_id: int, user_id: int) -> None:
    with unit_of_work(db):
        row = notification_repo.find_user_notification(db, notification_id, user_id)
        if row is None:
            raise NotFoundError("Notification not found")
        row.is_read = True


def mark_all_as_read(db: Session, user_id: int) -> int:
    with unit_of_work(db):
        updated = notification_repo.mark_all_as_read(db, user_id)
    return updated
