from typing import List, Optional

from sqlalchemy.orm import Session

from models.notifications import Notification as NotificationModel


def create_notification(db: Session, **data) -> NotificationModel:
    row = NotificationModel(**data)
    db.add(row)
    db.flush()
    return row


def get_user_notifications(db: Session, user_id: int, limit: int = 20, unread_only: bool = False) -> List[NotificationModel]:
    query = db.query(NotificationModel).filter(NotificationModel.user_id == user_id)
    if unread_only:
        query = query.filter(NotificationModel.is_read.is_(False))
    return query.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc()).limit(limit).all()


def count_unread(db: Session, user_id: int) -> int:
    return (
        db.query(NotificationModel)
        .filter(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
        .count()
    )


def find_user_notification(db: Session, notification_id: int, user_id: int) -> Optional[NotificationModel]:
    return (
        db.query(NotificationModel)
        .filter(NotificationModel.id == notification_id, NotificationModel.user_id == user_id)
        .first()
    )


def mark_all_as_read(db: Session, user_id: int) -> int:
    return (
        db.query(NotificationModel)
        .filter(NotificationModel.user_id == user_id, NotificationModel.is_read.is_(False))
        .update({NotificationModel.is_read: True}, synchronize_session=False)
    )
