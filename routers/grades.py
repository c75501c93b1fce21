from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_instructor
from models.users import User
from schemas.grades import BulkGradeRequest, SubmitGradeRequest
from services import grade_service

router = APIRouter(prefix="/grades", tags=["grades"])


# ✅ [CREATE] 성적 입력
@router.post("/submit")
def submit_grade(body: SubmitGradeRequest, user: User = Depends(require_instructor), db: Session = Depends(get_db)):
    data = grade_service.submit_grade(db, user.id, body.enrollment_id, body.grade.value)
    return {"success": True, "data": data, "message": "Grade submitted successfully"}


# ✅ [UPDATE] 성적 수정 (이미 COMPLETED 인 수강만)
@router.put("/update")
def update_grade(body: SubmitGradeRequest, user: User = Depends(require_instructor), db: Session = Depends(get_db)):
    data = grade_service.update_grade(db, user.id, body.enrollment_id, body.grade.value)
    return {"success": True, "data": data, "message": "Grade updated successfully"}


# ✅ [CREATE] 일괄 성적 입력 (항목별 성공/실패 보고)
@router.post("/bulk")
def bulk_submit(body: BulkGradeRequest, user: User = Depends(require_instructor), db: Session = Depends(get_db)):
    entries = [{"enrollment_id": g.enrollment_id, "grade": g.grade.value} for g in body.grades]
    data = grade_service.bulk_submit_grades(db, user.id, entries)
    return {"success": True, "data": data}


# ✅ [READ] 담당 과목 수강생 성적 목록
@router.get("/courses/{course_id}")
def course_grades(course_id: int, user: User = Depends(require_instructor), db: Session = Depends(get_db)):
    data = grade_service.get_course_student_grades(db, user.id, course_id)
    return {"success": True, "data": data}
