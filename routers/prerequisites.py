from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user, require_admin, require_student
from models.users import User
from schemas.prerequisites import PrerequisiteCreate
from services import prerequisite_service

router = APIRouter(prefix="/prerequisites", tags=["선수과목"])


# ==========================================================
# [1단계] 정적 라우터
# ==========================================================

# ✅ [READ] 전체 선수과목 목록 (관리자)
@router.get("/")
def list_prerequisites(_: User = Depends(require_admin), db: Session = Depends(get_db)):
    return {"success": True, "data": prerequisite_service.list_all_prerequisites(db)}


# ✅ [CREATE] 선수과목 추가 (관리자)
@router.post("/")
def add_prerequisite(body: PrerequisiteCreate, _: User = Depends(require_admin), db: Session = Depends(get_db)):
    data = prerequisite_service.add_prerequisite(db, body.course_code, body.prerequisite_code)
    return {"success": True, "data": data, "message": "Prerequisite added successfully"}


# ==========================================================
# [2단계] 부분 동적 라우터
# ==========================================================

# ✅ [CHECK] 내가 이 과목 선수과목을 충족하는지
@router.get("/check/{course_code}")
def check_prerequisites(course_code: str, user: User = Depends(require_student), db: Session = Depends(get_db)):
    data = prerequisite_service.check_prerequisites_met(db, user.id, course_code.strip().upper())
    return {"success": True, "data": data}


# ==========================================================
# [3단계] 완전 동적 라우터
# ==========================================================

# ✅ [READ] 특정 과목의 선수과목
@router.get("/{course_code}")
def course_prerequisites(course_code: str, _: User = Depends(get_current_user), db: Session = Depends(get_db)):
    data = prerequisite_service.get_prerequisites(db, course_code.strip().upper())
    return {"success": True, "data": data}


# ✅ [DELETE] 선수과목 삭제 (관리자)
@router.delete("/{prerequisite_id}")
def remove_prerequisite(prerequisite_id: int, _: User = Depends(require_admin), db: Session = Depends(get_db)):
    prerequisite_service.remove_prerequisite(db, prerequisite_id)
    return {"success": True, "data": {"prerequisite_id": prerequisite_id, "message": "Prerequisite deleted successfully"}}
