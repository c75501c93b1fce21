from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import get_current_user
from models.users import User
from repositories import semesters as semester_repo
from utils.errors import NotFoundError

router = APIRouter(prefix="/semesters", tags=["학기"])


def _to_item(s) -> dict:
    return {
        "id": s.id,
        "name": s.name,
        "code": s.code,
        "start_date": s.start_date.isoformat(),
        "end_date": s.end_date.isoformat(),
        "enrollment_start": s.enrollment_start.isoformat(),
        "enrollment_end": s.enrollment_end.isoformat(),
        "drop_deadline": s.drop_deadline.isoformat(),
        "is_active": s.is_active,
    }


# ✅ [READ] 학기 목록 (최근 학기 먼저)
@router.get("/")
def list_semesters(_: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "data": [_to_item(s) for s in semester_repo.list_semesters(db)]}


# ✅ [READ] 현재 학기
@router.get("/active")
def active_semester(_: User = Depends(get_current_user), db: Session = Depends(get_db)):
    semester = semester_repo.find_active_semester(db)
    if semester is None:
        raise NotFoundError("No active semester")
    return {"success": True, "data": _to_item(semester)}


# ✅ [READ] 학기 단건
@router.get("/{semester_id}")
def get_semester(semester_id: int, _: User = Depends(get_current_user), db: Session = Depends(get_db)):
    semester = semester_repo.find_semester_by_id(db, semester_id)
    if semester is None:
        raise NotFoundError("Semester not found")
    return {"success": True, "data": _to_item(semester)}
