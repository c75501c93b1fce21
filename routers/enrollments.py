from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import require_student
from models.users import User
from schemas.common import SuccessEnvelope
from schemas.enrollments import EnrollRequest, EnrollResult
from services import enrollment_service

router = APIRouter(prefix="/enrollments", tags=["수강신청"])


# ==========================================================
# [1단계] 정적 라우터
# ==========================================================

# ✅ [CREATE] 수강신청 (정원 초과 시 대기자 등록)
@router.post("/", response_model=SuccessEnvelope[EnrollResult], response_model_exclude_none=True)
def enroll(body: EnrollRequest, user: User = Depends(require_student), db: Session = Depends(get_db)):
    result = enrollment_service.enroll_student(db, user.id, body.course_id)
    message = "수강신청이 완료되었습니다" if result["status"] == "enrolled" else "대기자 명단에 등록되었습니다"
    return {"success": True, "data": result, "message": message}


# ✅ [READ] 내 수강 목록 (기본: 현재 학기)
@router.get("/me")
def my_enrollments(
    semester_id: Optional[int] = None,
    user: User = Depends(require_student),
    db: Session = Depends(get_db),
):
    data = enrollment_service.get_student_enrollments(db, user.id, semester_id)
    return {"success": True, "data": data}


# ==========================================================
# [2단계] 동적 라우터
# ==========================================================

# ✅ [UPDATE] 수강취소 (+ 대기자 자동 승격)
@router.post("/{enrollment_id}/drop")
def drop(enrollment_id: int, user: User = Depends(require_student), db: Session = Depends(get_db)):
    result = enrollment_service.drop_course(db, user.id, enrollment_id)
    message = "수강취소(W) 처리되었습니다" if result["grade"] == "W" else "수강취소되었습니다"
    return {"success": True, "data": result, "message": message}


# ✅ [UPDATE] 대기 취소
@router.post("/{enrollment_id}/leave-waitlist")
def leave_waitlist(enrollment_id: int, user: User = Depends(require_student), db: Session = Depends(get_db)):
    enrollment_service.leave_waitlist(db, user.id, enrollment_id)
    return {"success": True, "data": {"enrollment_id": enrollment_id}, "message": "대기자 명단에서 제외되었습니다"}
