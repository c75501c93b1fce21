from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from models.courses import Course as CourseModel, CourseInstructor as CourseInstructorModel
from models.enrollments import Enrollment as EnrollmentModel, EnrollmentStatus
from models.semesters import Semester as SemesterModel
from models.users import User as UserModel

ACTIVE_STATUSES = (EnrollmentStatus.ENROLLED.value, EnrollmentStatus.WAITLISTED.value)


# ==========================================================
# [1단계] 단건 조회 / 생성
# ==========================================================

def find_enrollment_by_id(db: Session, enrollment_id: int, refresh: bool = False) -> Optional[EnrollmentModel]:
    """refresh=True: 세션에 이미 올라온 객체도 DB 값으로 덮어씀 (과목 잠금 이후 재조회용)"""
    query = db.query(EnrollmentModel)
    if refresh:
        query = query.populate_existing()
    return (
        query
        .options(
            joinedload(EnrollmentModel.course).joinedload(CourseModel.semester),
            joinedload(EnrollmentModel.student),
        )
        .filter(EnrollmentModel.id == enrollment_id)
        .first()
    )


def find_active_enrollment(db: Session, student_id: int, course_id: int) -> Optional[EnrollmentModel]:
    """(학생, 과목)의 ENROLLED / WAITLISTED row (있으면 최대 1개)"""
    return (
        db.query(EnrollmentModel)
        .filter(
            EnrollmentModel.student_id == student_id,
            EnrollmentModel.course_id == course_id,
            EnrollmentModel.status.in_(ACTIVE_STATUSES),
        )
        .first()
    )


def create_enrollment(db: Session, student_id: int, course_id: int, status: str, enrolled_at: datetime) -> EnrollmentModel:
    row = EnrollmentModel(
        student_id=student_id,
        course_id=course_id,
        status=status,
        enrolled_at=enrolled_at,
    )
    db.add(row)
    db.flush()
    return row


# ==========================================================
# [2단계] 집계
# ==========================================================

def count_enrolled_in_course(db: Session, course_id: int) -> int:
    return (
        db.query(EnrollmentModel)
        .filter(
            EnrollmentModel.course_id == course_id,
            EnrollmentModel.status == EnrollmentStatus.ENROLLED.value,
        )
        .count()
    )


def count_student_credits(db: Session, student_id: int, semester_id: int) -> int:
    """학기 내 ENROLLED 과목 학점 합계"""
    total = (
        db.query(func.coalesce(func.sum(CourseModel.credits), 0))
        .join(EnrollmentModel, EnrollmentModel.course_id == CourseModel.id)
        .filter(
            EnrollmentModel.student_id == student_id,
            EnrollmentModel.status == EnrollmentStatus.ENROLLED.value,
            CourseModel.semester_id == semester_id,
        )
        .scalar()
    )
    return int(total or 0)


def count_student_enrollments(db: Session, student_id: int, semester_id: int) -> int:
    """학기 내 ENROLLED 과목 수"""
    return (
        db.query(EnrollmentModel)
        .join(CourseModel, EnrollmentModel.course_id == CourseModel.id)
        .filter(
            EnrollmentModel.student_id == student_id,
            EnrollmentModel.status == EnrollmentStatus.ENROLLED.value,
            CourseModel.semester_id == semester_id,
        )
        .count()
    )


def count_student_by_status(db: Session, student_id: int, status: str) -> int:
    return (
        db.query(EnrollmentModel)
        .filter(EnrollmentModel.student_id == student_id, EnrollmentModel.status == status)
        .count()
    )


# ==========================================================
# [3단계] 대기자 명단 (enrolled_at 오름차순 FIFO, 동시각은 id 순)
# ==========================================================

def _waitlist_query(db: Session, course_id: int):
    return (
        db.query(EnrollmentModel)
        .populate_existing()
        .filter(
            EnrollmentModel.course_id == course_id,
            EnrollmentModel.status == EnrollmentStatus.WAITLISTED.value,
        )
        .order_by(EnrollmentModel.enrolled_at.asc(), EnrollmentModel.id.asc())
    )


def get_next_waitlisted(db: Session, course_id: int) -> Optional[EnrollmentModel]:
    return _waitlist_query(db, course_id).first()


def get_waitlist_position(db: Session, student_id: int, course_id: int) -> Optional[int]:
    for idx, row in enumerate(_waitlist_query(db, course_id).all(), start=1):
        if row.student_id == student_id:
            return idx
    return None


# ==========================================================
# [4단계] 목록 조회
# ==========================================================

def get_student_enrollments(db: Session, student_id: int, semester_id: Optional[int] = None) -> List[EnrollmentModel]:
    query = (
        db.query(EnrollmentModel)
        .join(CourseModel, EnrollmentModel.course_id == CourseModel.id)
        .options(
            joinedload(EnrollmentModel.course).joinedload(CourseModel.semester),
            joinedload(EnrollmentModel.course)
            .joinedload(CourseModel.instructor_assignments)
            .joinedload(CourseInstructorModel.instructor),
        )
        .filter(EnrollmentModel.student_id == student_id)
    )
    if semester_id is not None:
        query = query.filter(CourseModel.semester_id == semester_id)
    return query.order_by(EnrollmentModel.enrolled_at.desc(), EnrollmentModel.id.desc()).all()


def get_all_student_enrollments(db: Session, student_id: int) -> List[EnrollmentModel]:
    """성적표/GPA 계산용: 상태와 무관하게 전부"""
    return (
        db.query(EnrollmentModel)
        .join(CourseModel, EnrollmentModel.course_id == CourseModel.id)
        .join(SemesterModel, CourseModel.semester_id == SemesterModel.id)
        .options(joinedload(EnrollmentModel.course).joinedload(CourseModel.semester))
        .filter(EnrollmentModel.student_id == student_id)
        .order_by(SemesterModel.start_date.asc(), EnrollmentModel.id.asc())
        .all()
    )


def get_course_enrollments(db: Session, course_id: int) -> List[EnrollmentModel]:
    return (
        db.query(EnrollmentModel)
        .join(UserModel, EnrollmentModel.student_id == UserModel.id)
        .options(joinedload(EnrollmentModel.student))
        .filter(EnrollmentModel.course_id == course_id)
        .order_by(UserModel.last_name.asc(), UserModel.first_name.asc(), EnrollmentModel.id.asc())
        .all()
    )


def is_student_in_courses(db: Session, student_id: int, course_ids: List[int]) -> bool:
    if not course_ids:
        return False
    return (
        db.query(EnrollmentModel.id)
        .filter(
            EnrollmentModel.student_id == student_id,
            EnrollmentModel.course_id.in_(course_ids),
        )
        .first()
        is not None
    )
