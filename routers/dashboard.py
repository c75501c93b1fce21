from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_instructor, require_student
from models.users import User
from services import dashboard_service

router = APIRouter(prefix="/dashboard", tags=["대시보드"])


# ✅ [SUMMARY] 학생 대시보드 (수강/이수 과목 수, 학점, GPA 추이)
@router.get("/student")
def student_dashboard(user: User = Depends(require_student), db: Session = Depends(get_db)):
    return {"success": True, "data": dashboard_service.get_student_dashboard(db, user.id)}


# ✅ [SUMMARY] 교수 대시보드 (담당 과목, 수강생, 성적 입력 현황)
@router.get("/instructor")
def instructor_dashboard(user: User = Depends(require_instructor), db: Session = Depends(get_db)):
    return {"success": True, "data": dashboard_service.get_instructor_dashboard(db, user.id)}
