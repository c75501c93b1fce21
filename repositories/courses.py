from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from models.courses import Course as CourseModel, CourseInstructor as CourseInstructorModel


def find_course_by_id(db: Session, course_id: int) -> Optional[CourseModel]:
    return (
        db.query(CourseModel)
        .options(joinedload(CourseModel.semester), joinedload(CourseModel.instructor_assignments))
        .filter(CourseModel.id == course_id)
        .first()
    )


def lock_course(db: Session, course_id: int) -> Optional[CourseModel]:
    """
    과목 row 에 쓰기 잠금 (SELECT ... FOR UPDATE)
    - 정원 확인 → INSERT 를 같은 트랜잭션 안에서 직렬화하기 위함
    """
    return (
        db.query(CourseModel)
        .filter(CourseModel.id == course_id)
        .with_for_update()
        .first()
    )


def is_instructor_assigned(db: Session, course_id: int, instructor_id: int) -> bool:
    return (
        db.query(CourseInstructorModel.id)
        .filter(
            CourseInstructorModel.course_id == course_id,
            CourseInstructorModel.instructor_id == instructor_id,
        )
        .first()
        is not None
    )


def get_instructor_course_ids(db: Session, instructor_id: int) -> List[int]:
    rows = (
        db.query(CourseInstructorModel.course_id)
        .filter(CourseInstructorModel.instructor_id == instructor_id)
        .all()
    )
    return [r[0] for r in rows]


def get_primary_instructor(course: CourseModel):
    for assignment in course.instructor_assignments:
        if assignment.is_primary:
            return assignment.instructor
    return None
