from sqlalchemy import Column, Integer, Float, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base


class CourseAssessment(Base):
    __tablename__ = "course_assessments"  # 과목별 평가 항목 (예: 중간 30%, 기말 70%)

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)   # 과목 ID (FK)
    name = Column(String(80), nullable=False)                               # 평가 항목명
    weight = Column(Float, nullable=False)                                  # 비중 (과목 내 합계 100)
    max_score = Column(Float, nullable=False, default=100)                  # 만점
    sort_order = Column(Integer, nullable=False, default=0)                 # 표시 순서

    scores = relationship(
        "EnrollmentAssessmentScore",
        back_populates="assessment",
        cascade="all, delete-orphan",
    )


class EnrollmentAssessmentScore(Base):
    __tablename__ = "enrollment_assessment_scores"  # 학생별 평가 항목 점수
    __table_args__ = (UniqueConstraint("enrollment_id", "assessment_id", name="uq_enrollment_assessment"),)

    id = Column(Integer, primary_key=True, index=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id"), nullable=False)       # 수강 ID (FK)
    assessment_id = Column(Integer, ForeignKey("course_assessments.id"), nullable=False)  # 평가 항목 ID (FK)
    score = Column(Float)                                                               # 득점 (미입력 NULL)
    max_score = Column(Float)                                                           # 학생별 만점 (없으면 항목 만점)

    enrollment = relationship("Enrollment", back_populates="assessment_scores")
    assessment = relationship("CourseAssessment", back_populates="scores")
