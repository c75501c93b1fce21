from typing import List, Optional

from sqlalchemy.orm import Session

from models.assessments import (
    CourseAssessment as AssessmentModel,
    EnrollmentAssessmentScore as ScoreModel,
)


def get_course_assessments(db: Session, course_id: int) -> List[AssessmentModel]:
    return (
        db.query(AssessmentModel)
        .filter(AssessmentModel.course_id == course_id)
        .order_by(AssessmentModel.sort_order.asc(), AssessmentModel.id.asc())
        .all()
    )


def replace_course_assessments(db: Session, course_id: int, assessments: List[dict]) -> List[AssessmentModel]:
    """과목 평가 항목 전체 교체 (기존 항목의 점수도 함께 삭제)"""
    old_ids = [a.id for a in get_course_assessments(db, course_id)]
    if old_ids:
        db.query(ScoreModel).filter(ScoreModel.assessment_id.in_(old_ids)).delete(synchronize_session=False)
        db.query(AssessmentModel).filter(AssessmentModel.id.in_(old_ids)).delete(synchronize_session=False)

    for idx, item in enumerate(assessments):
        db.add(AssessmentModel(
            course_id=course_id,
            name=item["name"],
            weight=item["weight"],
            max_score=item.get("max_score") or 100,
            sort_order=idx,
        ))
    db.flush()
    db.expire_all()
    return get_course_assessments(db, course_id)


def get_enrollment_scores(db: Session, enrollment_ids: List[int]) -> List[ScoreModel]:
    if not enrollment_ids:
        return []
    return db.query(ScoreModel).filter(ScoreModel.enrollment_id.in_(enrollment_ids)).all()


def upsert_assessment_score(
    db: Session,
    enrollment_id: int,
    assessment_id: int,
    score: Optional[float],
    max_score: Optional[float] = None,
) -> ScoreModel:
    row = (
        db.query(ScoreModel)
        .filter(ScoreModel.enrollment_id == enrollment_id, ScoreModel.assessment_id == assessment_id)
        .first()
    )
    if row is None:
        row = ScoreModel(enrollment_id=enrollment_id, assessment_id=assessment_id)
        db.add(row)
    row.score = score
    if max_score is not None:
        row.max_score = max_score
    db.flush()
    return row
