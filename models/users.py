import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from database.db import Base
from utils.clock import utcnow


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    INSTRUCTOR = "INSTRUCTOR"
    STUDENT = "STUDENT"


class User(Base):
    __tablename__ = "users"  # 사용자 (관리자/교수/학생)

    id = Column(Integer, primary_key=True, index=True)              # 사용자 고유 ID (PK)
    email = Column(String(255), unique=True, nullable=False)        # 이메일 (로그인 ID)
    first_name = Column(String(100), nullable=False)                # 이름
    last_name = Column(String(100), nullable=False)                 # 성
    role = Column(String(20), nullable=False, default=Role.STUDENT.value)  # 역할 (변경 불가 분류)
    is_active = Column(Boolean, nullable=False, default=True)       # 활성 계정 여부
    created_at = Column(DateTime, nullable=False, default=utcnow)   # 생성 시각

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
