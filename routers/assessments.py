from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_instructor
from models.users import User
from schemas.assessments import SaveAssessmentsRequest, SaveScoresRequest
from services import assessment_service

router = APIRouter(prefix="/assessments", tags=["평가 항목"])


# ✅ [READ] 과목 채점 화면 데이터 (항목 + 학생별 점수 + 추천 성적)
@router.get("/courses/{course_id}")
def grading_data(course_id: int, user: User = Depends(require_instructor), db: Session = Depends(get_db)):
    return {"success": True, "data": assessment_service.get_course_grading_data(db, user.id, course_id)}


# ✅ [UPDATE] 평가 항목 전체 교체 (비중 합계 100)
@router.put("/courses/{course_id}")
def save_assessments(
    course_id: int,
    body: SaveAssessmentsRequest,
    user: User = Depends(require_instructor),
    db: Session = Depends(get_db),
):
    items = [a.model_dump() for a in body.assessments]
    data = assessment_service.save_course_assessments(db, user.id, course_id, items)
    return {"success": True, "data": {"assessments": data}}


# ✅ [UPDATE] 학생 항목 점수 저장
@router.put("/enrollments/{enrollment_id}/scores")
def save_scores(
    enrollment_id: int,
    body: SaveScoresRequest,
    user: User = Depends(require_instructor),
    db: Session = Depends(get_db),
):
    assessment_service.save_assessment_scores(db, user.id, enrollment_id, [s.model_dump() for s in body.scores])
    return {"success": True, "data": {"enrollment_id": enrollment_id}}
