"""
services/grade_service.py

- 교수 성적 입력 / 수정 / 일괄 입력 / 과목별 성적 조회
- 성적 입력 가능 기간: 학기 종강일 + GRADING_WINDOW_DAYS 일 까지
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from config.constants import GRADE_LABELS, GRADE_POINTS, GRADING_WINDOW_DAYS
from database.db import unit_of_work
from models.enrollments import EnrollmentStatus
from models.notifications import NotificationType
from repositories import courses as course_repo
from repositories import enrollments as enrollment_repo
from services import notification_service
from utils.clock import utcnow
from utils.errors import ForbiddenError, NotFoundError, ValidationError, to_app_error

logger = logging.getLogger(__name__)


def calculate_grade_points(grade: str, credits: int) -> Optional[float]:
    """평점 x 학점. 평점이 없는 성적(P/I/W/DO/NG)은 None"""
    if grade not in GRADE_POINTS:
        raise ValidationError(f"Unknown grade: {grade}")
    points = GRADE_POINTS[grade]
    return points * credits if points is not None else None


def require_assigned_course(db: Session, instructor_id: int, course_id: int):
    course = course_repo.find_course_by_id(db, course_id)
    if course is None:
        raise NotFoundError("Course not found")
    if not course_repo.is_instructor_assigned(db, course.id, instructor_id):
        raise ForbiddenError("You are not assigned to this course")
    return course


def _write_grade(
    db: Session,
    instructor_id: int,
    enrollment_id: int,
    grade: str,
    allowed_statuses: tuple,
    status_message: str,
    now: datetime,
) -> dict:
    with unit_of_work(db):
        enrollment = enrollment_repo.find_enrollment_by_id(db, enrollment_id)
        if enrollment is None:
            raise NotFoundError("Enrollment not found")
        if enrollment.status not in allowed_statuses:
            raise ValidationError(status_message)

        course = require_assigned_course(db, instructor_id, enrollment.course_id)

        grade_deadline = course.semester.end_date + timedelta(days=GRADING_WINDOW_DAYS)
        if now > grade_deadline:
            raise ValidationError("The grading period has closed for this semester")

        grade_points = calculate_grade_points(grade, course.credits)
        enrollment.grade = grade
        enrollment.grade_points = grade_points
        enrollment.graded_by = instructor_id
        enrollment.graded_at = now
        enrollment.status = EnrollmentStatus.COMPLETED.value
        db.flush()

        notification_service.notify(
            db,
            enrollment.student_id,
            "Grade posted",
            f"Your grade for {course.code} is {GRADE_LABELS.get(grade, grade)}.",
            NotificationType.GRADE,
        )
        result = {
            "enrollment_id": enrollment.id,
            "grade": grade,
            "grade_points": grade_points,
            "status": enrollment.status,
        }

    logger.info("성적 입력: instructor=%s enrollment=%s grade=%s", instructor_id, enrollment_id, grade)
    return result


def submit_grade(db: Session, instructor_id: int, enrollment_id: int, grade: str, now: Optional[datetime] = None) -> dict:
    """성적 입력 (이미 COMPLETED 인 경우 재입력도 허용)"""
    return _write_grade(
        db,
        instructor_id,
        enrollment_id,
        grade,
        (EnrollmentStatus.ENROLLED.value, EnrollmentStatus.COMPLETED.value),
        "Can only grade students with ENROLLED or COMPLETED status",
        now or utcnow(),
    )


def update_grade(db: Session, instructor_id: int, enrollment_id: int, grade: str, now: Optional[datetime] = None) -> dict:
    """이미 입력된 성적 수정 (COMPLETED 만)"""
    return _write_grade(
        db,
        instructor_id,
        enrollment_id,
        grade,
        (EnrollmentStatus.COMPLETED.value,),
        "Can only update grades for completed enrollments",
        now or utcnow(),
    )


def bulk_submit_grades(db: Session, instructor_id: int, grades: List[dict], now: Optional[datetime] = None) -> dict:
    """
    일괄 성적 입력
    - 항목별로 독립 처리: 하나가 실패해도 나머지는 계속 진행
    """
    results = []
    for entry in grades:
        try:
            submit_grade(db, instructor_id, entry["enrollment_id"], entry["grade"], now=now)
            results.append({"enrollment_id": entry["enrollment_id"], "success": True})
        except Exception as exc:
            app_error = to_app_error(exc)
            if app_error is not exc:
                logger.exception("일괄 성적 입력 중 예기치 못한 오류: enrollment=%s", entry["enrollment_id"])
            results.append({
                "enrollment_id": entry["enrollment_id"],
                "success": False,
                "error": {"code": app_error.code, "message": app_error.message},
            })

    success_count = sum(1 for r in results if r["success"])
    return {
        "results": results,
        "success_count": success_count,
        "fail_count": len(results) - success_count,
    }


def get_course_student_grades(db: Session, instructor_id: int, course_id: int) -> List[dict]:
    require_assigned_course(db, instructor_id, course_id)

    return [
        {
            "enrollment_id": e.id,
            "student_id": e.student.id,
            "first_name": e.student.first_name,
            "last_name": e.student.last_name,
            "email": e.student.email,
            "status": e.status,
            "grade": e.grade,
            "grade_points": e.grade_points,
            "graded_at": e.graded_at.isoformat() if e.graded_at else None,
        }
        for e in enrollment_repo.get_course_enrollments(db, course_id)
    ]
