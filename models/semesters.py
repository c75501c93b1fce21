from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from database.db import Base


class Semester(Base):
    __tablename__ = "semesters"  # 학기 테이블

    id = Column(Integer, primary_key=True, index=True)          # 학기 고유 ID (PK)
    name = Column(String(100), nullable=False)                  # 학기 이름 (예: Fall 2025)
    code = Column(String(20), unique=True, nullable=False)      # 학기 코드 (예: 2025-FA)
    start_date = Column(DateTime, nullable=False)               # 개강일 (성적표 정렬 기준)
    end_date = Column(DateTime, nullable=False)                 # 종강일 (성적 입력 마감 기준)
    enrollment_start = Column(DateTime, nullable=False)         # 수강신청 시작
    enrollment_end = Column(DateTime, nullable=False)           # 수강신청 종료
    drop_deadline = Column(DateTime, nullable=False)            # 수강취소 마감 (이후 취소는 W)
    is_active = Column(Boolean, nullable=False, default=False)  # 현재 학기 여부 (관리자가 하나만 지정)

    # ✅ 이 학기에 개설된 과목들 (1:N)
    courses = relationship("Course", back_populates="semester")
