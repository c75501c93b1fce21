from sqlalchemy import Column, Integer, String, UniqueConstraint
from database.db import Base


class CoursePrerequisite(Base):
    """
    선수과목 간선 (course_code → prerequisite_code)
    - 과목 row 의 FK 가 아니라 과목 코드 문자열로 연결
      (해당 학기에 아직 개설되지 않은 과목도 선수과목으로 지정 가능)
    """
    __tablename__ = "course_prerequisites"
    __table_args__ = (UniqueConstraint("course_code", "prerequisite_code", name="uq_course_prerequisite"),)

    id = Column(Integer, primary_key=True, index=True)
    course_code = Column(String(20), nullable=False, index=True)    # 대상 과목 코드
    prerequisite_code = Column(String(20), nullable=False)          # 선수과목 코드
