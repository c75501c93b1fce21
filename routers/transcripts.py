from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_staff, require_student
from models.users import User
from services import gpa_service

router = APIRouter(prefix="/transcripts", tags=["성적증명서"])


# ✅ [READ] 내 성적표 (학기별 과목 + GPA + 진급 요약)
@router.get("/me")
def my_transcript(user: User = Depends(require_student), db: Session = Depends(get_db)):
    return {"success": True, "data": gpa_service.get_transcript(db, user.id)}


# ✅ [READ] 내 GPA 요약
@router.get("/me/summary")
def my_gpa_summary(user: User = Depends(require_student), db: Session = Depends(get_db)):
    return {"success": True, "data": gpa_service.get_gpa_summary(db, user.id)}


# ✅ [READ] 특정 학생 성적표 (관리자 전체 / 교수는 담당 과목 수강생만)
@router.get("/students/{student_id}")
def student_transcript(student_id: int, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    data = gpa_service.get_student_transcript_for_staff(db, user.id, user.role, student_id)
    return {"success": True, "data": data}
