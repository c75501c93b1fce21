"""
공용 테스트 fixture

- 테스트마다 새 메모리 SQLite (StaticPool) + 스키마 생성
- get_db 의존성 오버라이드로 API 테스트도 같은 DB 사용
- 서비스 테스트는 now 를 고정값으로 넘겨서 시계를 고정
"""

import os

os.environ.setdefault("SQLITE_PATH", ":memory:")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.db import Base, get_db, make_engine
from main import app
from models.courses import Course, CourseInstructor
from models.enrollments import Enrollment, EnrollmentStatus
from models.prerequisites import CoursePrerequisite
from models.semesters import Semester
from models.users import Role, User
from utils.clock import utcnow

# 서비스 테스트 기준 시각 (수강신청 기간 안, 취소 마감 전)
NOW = datetime(2025, 9, 10, 12, 0)


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ==========================================================
# [팩토리] 사용자 / 학기 / 과목 / 수강
# ==========================================================

@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role: Role = Role.STUDENT, first_name: str = "Test", last_name: str = None, is_active: bool = True) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=f"user{n}@campus.test",
            first_name=first_name,
            last_name=last_name or f"User{n:03d}",
            role=role.value,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_semester(db):
    def _make(code: str, start: datetime, is_active: bool = False, **overrides) -> Semester:
        fields = dict(
            name=f"Semester {code}",
            code=code,
            start_date=start,
            end_date=start + timedelta(days=110),
            enrollment_start=start - timedelta(days=20),
            enrollment_end=start + timedelta(days=14),
            drop_deadline=start + timedelta(days=30),
            is_active=is_active,
        )
        fields.update(overrides)
        semester = Semester(**fields)
        db.add(semester)
        db.commit()
        return semester

    return _make


@pytest.fixture
def semester(make_semester):
    """NOW(2025-09-10) 기준: 수강신청 기간 중, 취소 마감 전, 현재 학기"""
    return make_semester("2025-FA", datetime(2025, 9, 1), is_active=True)


@pytest.fixture
def live_semester(make_semester):
    """실제 시계 기준으로 열려 있는 학기 (API 테스트용)"""
    start = utcnow() - timedelta(days=5)
    return make_semester("LIVE", start, is_active=True)


@pytest.fixture
def make_course(db):
    def _make(code: str, semester: Semester, credits: int = 3, capacity: int = 30, instructors=(), name: str = None) -> Course:
        course = Course(
            code=code,
            name=name or f"Course {code}",
            credits=credits,
            capacity=capacity,
            semester_id=semester.id,
        )
        db.add(course)
        db.flush()
        for idx, instructor in enumerate(instructors):
            db.add(CourseInstructor(course_id=course.id, instructor_id=instructor.id, is_primary=idx == 0))
        db.commit()
        return course

    return _make


@pytest.fixture
def make_enrollment(db):
    def _make(student: User, course: Course, status: EnrollmentStatus = EnrollmentStatus.ENROLLED,
              grade: str = None, enrolled_at: datetime = None) -> Enrollment:
        from config.constants import GRADE_POINTS

        points = None
        if grade is not None and GRADE_POINTS.get(grade) is not None:
            points = GRADE_POINTS[grade] * course.credits
        enrollment = Enrollment(
            student_id=student.id,
            course_id=course.id,
            status=status.value,
            grade=grade,
            grade_points=points,
            enrolled_at=enrolled_at or NOW - timedelta(days=3),
        )
        db.add(enrollment)
        db.commit()
        return enrollment

    return _make


@pytest.fixture
def add_prerequisite(db):
    def _add(course_code: str, prerequisite_code: str) -> CoursePrerequisite:
        row = CoursePrerequisite(course_code=course_code, prerequisite_code=prerequisite_code)
        db.add(row)
        db.commit()
        return row

    return _add


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT, first_name="Alice")


@pytest.fixture
def instructor(make_user):
    return make_user(Role.INSTRUCTOR, first_name="Prof")


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, first_name="Admin")


def auth_headers(user: User) -> dict:
    return {"X-User-Id": str(user.id)}
