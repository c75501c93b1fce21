from typing import List, Optional, Set

from sqlalchemy.orm import Session

from config.constants import NON_PASSING_GRADES
from models.courses import Course as CourseModel
from models.enrollments import Enrollment as EnrollmentModel, EnrollmentStatus
from models.prerequisites import CoursePrerequisite as PrerequisiteModel


def get_prerequisites(db: Session, course_code: str) -> List[PrerequisiteModel]:
    return (
        db.query(PrerequisiteModel)
        .filter(PrerequisiteModel.course_code == course_code)
        .order_by(PrerequisiteModel.prerequisite_code.asc())
        .all()
    )


def find_prerequisite_by_id(db: Session, prerequisite_id: int) -> Optional[PrerequisiteModel]:
    return db.query(PrerequisiteModel).filter(PrerequisiteModel.id == prerequisite_id).first()


def find_prerequisite(db: Session, course_code: str, prerequisite_code: str) -> Optional[PrerequisiteModel]:
    return (
        db.query(PrerequisiteModel)
        .filter(
            PrerequisiteModel.course_code == course_code,
            PrerequisiteModel.prerequisite_code == prerequisite_code,
        )
        .first()
    )


def add_prerequisite(db: Session, course_code: str, prerequisite_code: str) -> PrerequisiteModel:
    row = PrerequisiteModel(course_code=course_code, prerequisite_code=prerequisite_code)
    db.add(row)
    db.flush()
    return row


def remove_prerequisite(db: Session, row: PrerequisiteModel) -> None:
    db.delete(row)
    db.flush()


def list_all_prerequisites(db: Session) -> List[PrerequisiteModel]:
    return (
        db.query(PrerequisiteModel)
        .order_by(PrerequisiteModel.course_code.asc(), PrerequisiteModel.prerequisite_code.asc())
        .all()
    )


def get_passed_course_codes(db: Session, student_id: int) -> Set[str]:
    """COMPLETED 이면서 불합격 성적(F/W/DO/NG/I)이 아닌 과목 코드 집합"""
    rows = (
        db.query(CourseModel.code)
        .join(EnrollmentModel, EnrollmentModel.course_id == CourseModel.id)
        .filter(
            EnrollmentModel.student_id == student_id,
            EnrollmentModel.status == EnrollmentStatus.COMPLETED.value,
            EnrollmentModel.grade.isnot(None),
            EnrollmentModel.grade.notin_(list(NON_PASSING_GRADES)),
        )
        .all()
    )
    return {r[0] for r in rows}
