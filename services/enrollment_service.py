"""
services/enrollment_service.py

- 수강신청 / 수강취소 / 대기자 명단 처리
- 정원 확인 → INSERT, 취소 → 대기자 승격은 과목 row 잠금을 잡은 같은 트랜잭션 안에서 수행
  (동시에 마지막 자리를 신청해도 정원을 넘지 않음)
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from config.constants import MAX_CREDITS_PER_SEMESTER
from database.db import unit_of_work
from models.enrollments import EnrollmentStatus
from models.notifications import NotificationType
from repositories import courses as course_repo
from repositories import enrollments as enrollment_repo
from repositories import semesters as semester_repo
from services import notification_service, prerequisite_service
from utils.clock import utcnow
from utils.errors import (
    ConflictError,
    CreditLimitExceededError,
    EnrollmentClosedError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ==========================================================
# [1단계] 수강신청 (정원 초과 시 대기자 등록)
# ==========================================================

def enroll_student(db: Session, student_id: int, course_id: int, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()

    with unit_of_work(db):
        # 1. 과목 잠금 → 존재 확인
        # 트랜잭션의 첫 조회가 잠금이어야 이후 집계가 앞선 신청의 커밋을 봄
        if course_repo.lock_course(db, course_id) is None:
            raise NotFoundError("Course not found")
        course = course_repo.find_course_by_id(db, course_id)

        # 2. 수강신청 기간 확인
        semester = course.semester
        if now < semester.enrollment_start or now > semester.enrollment_end:
            raise EnrollmentClosedError("Enrollment period is not open for this semester")

        # 3. 중복 신청 / 중복 대기 확인
        existing = enrollment_repo.find_active_enrollment(db, student_id, course_id)
        if existing is not None:
            if existing.status == EnrollmentStatus.WAITLISTED.value:
                raise ConflictError("You are already on the waitlist for this course")
            raise ConflictError("You are already enrolled in this course")

        # 4. 정원 확인 → 가득 찼으면 대기자 등록 (선수과목/학점 확인 생략)
        enrolled_count = enrollment_repo.count_enrolled_in_course(db, course_id)
        if enrolled_count >= course.capacity:
            enrollment_repo.create_enrollment(
                db, student_id, course_id, EnrollmentStatus.WAITLISTED.value, now
            )
            position = enrollment_repo.get_waitlist_position(db, student_id, course_id)
            notification_service.notify(
                db,
                student_id,
                "Added to waitlist",
                f"{course.code} is full. You are #{position} on the waitlist.",
                NotificationType.ENROLLMENT,
            )
            logger.info("대기자 등록: student=%s course=%s position=%s", student_id, course.code, position)
            return {"status": "waitlisted", "waitlist_position": position}

        # 5. 선수과목 확인
        prereq = prerequisite_service.check_prerequisites_met(db, student_id, course.code)
        if not prereq["met"]:
            raise ValidationError(
                f"Missing prerequisites: {', '.join(prereq['missing'])}",
                {"missing_prerequisites": prereq["missing"]},
            )

        # 6. 학기당 최대 학점 확인
        current_credits = enrollment_repo.count_student_credits(db, student_id, semester.id)
        if current_credits + course.credits > MAX_CREDITS_PER_SEMESTER:
            raise CreditLimitExceededError(
                f"Enrolling would exceed the maximum of {MAX_CREDITS_PER_SEMESTER} credits per semester"
            )

        # 7. 수강 등록
        enrollment_repo.create_enrollment(
            db, student_id, course_id, EnrollmentStatus.ENROLLED.value, now
        )
        notification_service.notify(
            db,
            student_id,
            "Enrollment confirmed",
            f"You are enrolled in {course.code} {course.name}.",
            NotificationType.ENROLLMENT,
        )

    logger.info("수강신청 완료: student=%s course=%s", student_id, course_id)
    return {"status": "enrolled"}


# ==========================================================
# [2단계] 수강취소 (+ 대기자 1명 승격)
# ==========================================================

def _lock_own_enrollment(db: Session, student_id: int, enrollment_id: int, not_found: str, forbidden: str):
    """
    수강 row 의 과목을 잠근 뒤 수강 row 를 다시 읽어서 반환
    - 잠금 대기 중에 다른 요청이 취소/승격했을 수 있으므로 상태 확인은 반환값으로 할 것
    """
    enrollment = enrollment_repo.find_enrollment_by_id(db, enrollment_id)
    if enrollment is None:
        raise NotFoundError(not_found)
    if enrollment.student_id != student_id:
        raise ForbiddenError(forbidden)

    course_repo.lock_course(db, enrollment.course_id)
    return enrollment_repo.find_enrollment_by_id(db, enrollment_id, refresh=True)


def drop_course(db: Session, student_id: int, enrollment_id: int, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()

    with unit_of_work(db):
        enrollment = _lock_own_enrollment(
            db, student_id, enrollment_id,
            "Enrollment not found", "You can only drop your own enrollments",
        )
        if enrollment.status != EnrollmentStatus.ENROLLED.value:
            raise ValidationError("Can only drop active enrollments")

        course = enrollment.course
        semester = course.semester

        # 학기 마지막 과목은 취소 불가 (전체 휴학/자퇴 절차는 별도)
        if enrollment_repo.count_student_enrollments(db, student_id, semester.id) <= 1:
            raise ValidationError("Cannot drop your last enrolled course")

        withdrawn = now > semester.drop_deadline
        enrollment.status = EnrollmentStatus.DROPPED.value
        enrollment.dropped_at = now
        if withdrawn:
            # 취소 마감 이후 → 성적표에 W 로 남김
            enrollment.grade = "W"
            enrollment.grade_points = None
            enrollment.graded_at = now
        db.flush()

        promoted = _promote_next_waitlisted(db, course, now)

        if withdrawn:
            notification_service.notify(
                db,
                student_id,
                "Course withdrawn",
                f"{course.code} was dropped after the drop deadline and recorded as W.",
                NotificationType.ENROLLMENT,
            )

    logger.info(
        "수강취소: student=%s enrollment=%s withdrawn=%s promoted=%s",
        student_id, enrollment_id, withdrawn, promoted,
    )
    return {
        "status": EnrollmentStatus.DROPPED.value,
        "grade": "W" if withdrawn else None,
        "promoted_enrollment_id": promoted,
    }


def _promote_next_waitlisted(db: Session, course, now: datetime) -> Optional[int]:
    """빈 자리 1개 → 가장 오래된 대기자 1명만 승격 (enrolled_at 을 승격 시각으로 갱신)"""
    next_row = enrollment_repo.get_next_waitlisted(db, course.id)
    if next_row is None:
        return None

    next_row.status = EnrollmentStatus.ENROLLED.value
    next_row.enrolled_at = now
    db.flush()

    notification_service.notify(
        db,
        next_row.student_id,
        "Promoted from waitlist",
        f"A seat opened in {course.code}. You are now enrolled.",
        NotificationType.ENROLLMENT,
    )
    return next_row.id


# ==========================================================
# [3단계] 대기 취소
# ==========================================================

def leave_waitlist(db: Session, student_id: int, enrollment_id: int, now: Optional[datetime] = None) -> None:
    now = now or utcnow()

    with unit_of_work(db):
        # 승격과 겹치지 않도록 과목 잠금 후 상태 확인
        enrollment = _lock_own_enrollment(
            db, student_id, enrollment_id,
            "Waitlist entry not found", "You can only remove your own waitlist entries",
        )
        if enrollment.status != EnrollmentStatus.WAITLISTED.value:
            raise ValidationError("This enrollment is not waitlisted")

        # 자리가 비는 게 아니므로 승격 없음
        enrollment.status = EnrollmentStatus.DROPPED.value
        enrollment.dropped_at = now


# ==========================================================
# [4단계] 학생 수강 목록
# ==========================================================

def get_student_enrollments(db: Session, student_id: int, semester_id: Optional[int] = None) -> List[dict]:
    target_semester_id = semester_id
    if target_semester_id is None:
        active = semester_repo.find_active_semester(db)
        target_semester_id = active.id if active else None

    rows = enrollment_repo.get_student_enrollments(db, student_id, target_semester_id)

    result = []
    for e in rows:
        instructor = course_repo.get_primary_instructor(e.course)
        item = {
            "id": e.id,
            "course_id": e.course_id,
            "course_code": e.course.code,
            "course_name": e.course.name,
            "credits": e.course.credits,
            "status": e.status,
            "enrolled_at": e.enrolled_at.isoformat(),
            "dropped_at": e.dropped_at.isoformat() if e.dropped_at else None,
            "grade": e.grade,
            "grade_points": e.grade_points,
            "instructor_name": instructor.full_name if instructor else None,
            "semester_name": e.course.semester.name,
        }
        if e.status == EnrollmentStatus.WAITLISTED.value:
            item["waitlist_position"] = enrollment_repo.get_waitlist_position(db, student_id, e.course_id)
        result.append(item)
    return result
