from sqlalchemy.orm import Session

from models.enrollments import EnrollmentStatus
from repositories import courses as course_repo
from repositories import enrollments as enrollment_repo
from repositories import semesters as semester_repo
from services import gpa_service


def get_student_dashboard(db: Session, student_id: int) -> dict:
    transcript = gpa_service.get_transcript(db, student_id)

    enrolled_credits = sum(
        e.course.credits
        for e in enrollment_repo.get_all_student_enrollments(db, student_id)
        if e.status == EnrollmentStatus.ENROLLED.value
    )
    gpa_trend = [
        {
            "semester_code": entry["semester_code"],
            "semester_name": entry["semester_name"],
            "gpa": entry["semester_gpa"],
        }
        for entry in transcript["entries"]
        if entry["semester_gpa"] is not None
    ]
    active = semester_repo.find_active_semester(db)

    return {
        "enrolled_courses": enrollment_repo.count_student_by_status(db, student_id, EnrollmentStatus.ENROLLED.value),
        "completed_courses": enrollment_repo.count_student_by_status(db, student_id, EnrollmentStatus.COMPLETED.value),
        "total_credits": enrolled_credits,
        "current_gpa": transcript["summary"]["cumulative_gpa"],
        "academic_standing": transcript["summary"]["academic_standing"],
        "active_semester": active.name if active else None,
        "gpa_trend": gpa_trend,
    }


def get_instructor_dashboard(db: Session, instructor_id: int) -> dict:
    course_ids = course_repo.get_instructor_course_ids(db, instructor_id)

    total_students = 0
    graded = 0
    pending = 0
    for course_id in course_ids:
        for e in enrollment_repo.get_course_enrollments(db, course_id):
            # 대기자 / 취소 기록은 제외
            if e.status not in (EnrollmentStatus.ENROLLED.value, EnrollmentStatus.COMPLETED.value):
                continue
            total_students += 1
            if e.grade:
                graded += 1
            else:
                pending += 1

    return {
        "assigned_courses": len(course_ids),
        "total_students": total_students,
        "graded_count": graded,
        "pending_grades": pending,
    }
