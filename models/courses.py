from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database.db import Base


class Course(Base):
    __tablename__ = "courses"  # 개설 과목 테이블
    __table_args__ = (UniqueConstraint("semester_id", "code", name="uq_course_semester_code"),)

    id = Column(Integer, primary_key=True, index=True)                      # 과목 고유 ID (PK)
    code = Column(String(20), nullable=False, index=True)                   # 과목 코드 (선수과목 참조 키, 학기마다 재개설)
    name = Column(String(200), nullable=False)                              # 과목명
    description = Column(Text)                                              # 설명
    credits = Column(Integer, nullable=False)                               # 학점 (1~6)
    capacity = Column(Integer, nullable=False)                              # 정원 (1~500)
    semester_id = Column(Integer, ForeignKey("semesters.id"), nullable=False)  # 소속 학기 (FK)

    # ==========================================================
    # [관계 설정]
    # ==========================================================

    # ✅ 소속 학기 (N:1)
    semester = relationship("Semester", back_populates="courses")

    # ✅ 담당 교수 배정 (N:M, is_primary 플래그 포함)
    instructor_assignments = relationship(
        "CourseInstructor",
        back_populates="course",
        cascade="all, delete-orphan",
    )

    # ✅ 수강 기록 (1:N)
    enrollments = relationship("Enrollment", back_populates="course")


class CourseInstructor(Base):
    __tablename__ = "course_instructors"  # 과목-교수 배정 테이블
    __table_args__ = (UniqueConstraint("course_id", "instructor_id", name="uq_course_instructor"),)

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)       # 과목 ID (FK)
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=False)     # 교수 ID (FK)
    is_primary = Column(Boolean, nullable=False, default=False)                 # 책임 교수 여부

    course = relationship("Course", back_populates="instructor_assignments")
    instructor = relationship("User")
