import logging
from typing import List

from sqlalchemy.orm import Session

from database.db import unit_of_work
from repositories import prerequisites as prerequisite_repo
from utils.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _to_item(p) -> dict:
    return {"id": p.id, "course_code": p.course_code, "prerequisite_code": p.prerequisite_code}


def get_prerequisites(db: Session, course_code: str) -> List[dict]:
    return [_to_item(p) for p in prerequisite_repo.get_prerequisites(db, course_code)]


def list_all_prerequisites(db: Session) -> List[dict]:
    return [_to_item(p) for p in prerequisite_repo.list_all_prerequisites(db)]


def add_prerequisite(db: Session, course_code: str, prerequisite_code: str) -> dict:
    if course_code == prerequisite_code:
        raise ValidationError("A course cannot be its own prerequisite")

    with unit_of_work(db):
        if prerequisite_repo.find_prerequisite(db, course_code, prerequisite_code) is not None:
            raise ConflictError("This prerequisite already exists")
        row = prerequisite_repo.add_prerequisite(db, course_code, prerequisite_code)
        item = _to_item(row)

    logger.info("선수과목 추가: %s ← %s", course_code, prerequisite_code)
    return item


def remove_prerequisite(db: Session, prerequisite_id: int) -> None:
    with unit_of_work(db):
        row = prerequisite_repo.find_prerequisite_by_id(db, prerequisite_id)
        if row is None:
            raise NotFoundError("Prerequisite not found")
        prerequisite_repo.remove_prerequisite(db, row)


def check_prerequisites_met(db: Session, student_id: int, course_code: str) -> dict:
    """
    선수과목 충족 여부
    - 직접 선수과목만 확인 (선수과목의 선수과목까지 재귀로 보지 않음)
    - COMPLETED + 불합격 성적(F/W/DO/NG/I) 아님 → 이수로 인정
      (재수강으로 GPA 에서 제외된 예전 이수 기록도 인정)
    """
    prerequisites = prerequisite_repo.get_prerequisites(db, course_code)
    if not prerequisites:
        return {"met": True, "missing": []}

    passed = prerequisite_repo.get_passed_course_codes(db, student_id)
    missing = [p.prerequisite_code for p in prerequisites if p.prerequisite_code not in passed]
    return {"met": not missing, "missing": missing}
