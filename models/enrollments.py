import enum

from sqlalchemy import Column, Integer, Float, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from database.db import Base
from utils.clock import utcnow


class EnrollmentStatus(str, enum.Enum):
    ENROLLED = "ENROLLED"
    WAITLISTED = "WAITLISTED"
    DROPPED = "DROPPED"
    COMPLETED = "COMPLETED"


class Enrollment(Base):
    """
    수강 기록 (학생 1명 x 과목 1개)
    - 물리 삭제하지 않음 (취소/이수 이력이 성적표에 남아야 함)
    - 같은 (학생, 과목)에 ENROLLED/WAITLISTED 인 row 는 최대 1개 (서비스 레이어에서 보장)
    """
    __tablename__ = "enrollments"
    __table_args__ = (
        Index("ix_enrollments_student_course", "student_id", "course_id"),
        Index("ix_enrollments_course_status", "course_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)                          # 수강 고유 ID (PK)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)        # 학생 ID (FK)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)       # 과목 ID (FK)
    status = Column(String(20), nullable=False, default=EnrollmentStatus.ENROLLED.value)  # 수강 상태
    grade = Column(String(10))                                                  # 성적 토큰 (예: A_PLUS, W)
    grade_points = Column(Float)                                                # 평점 x 학점 (GPA 제외 성적은 NULL)
    enrolled_at = Column(DateTime, nullable=False, default=utcnow)              # 신청/대기 등록 시각 (대기 순번 기준)
    dropped_at = Column(DateTime)                                               # 취소 시각
    graded_at = Column(DateTime)                                                # 성적 입력 시각
    graded_by = Column(Integer, ForeignKey("users.id"))                         # 성적 입력 교수 ID

    # ==========================================================
    # [관계 설정]
    # ==========================================================
    student = relationship("User", foreign_keys=[student_id])
    course = relationship("Course", back_populates="enrollments")
    assessment_scores = relationship("EnrollmentAssessmentScore", back_populates="enrollment")
