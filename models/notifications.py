import enum

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from database.db import Base
from utils.clock import utcnow


class NotificationType(str, enum.Enum):
    ENROLLMENT = "ENROLLMENT"
    GRADE = "GRADE"
    ANNOUNCEMENT = "ANNOUNCEMENT"
    SYSTEM = "SYSTEM"


class Notification(Base):
    __tablename__ = "notifications"  # 사용자 알림 테이블

    id = Column(Integer, primary_key=True, index=True)                      # 알림 고유 ID (PK)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # 수신자 ID
    title = Column(String(200), nullable=False)                             # 제목
    message = Column(Text, nullable=False)                                  # 내용
    type = Column(String(20), nullable=False, default=NotificationType.SYSTEM.value)  # 알림 종류
    is_read = Column(Boolean, nullable=False, default=False)                # 읽음 여부
    link = Column(String(255))                                              # 이동 링크 (선택)
    created_at = Column(DateTime, nullable=False, default=utcnow)           # 생성 시각
