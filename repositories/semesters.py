from typing import List, Optional

from sqlalchemy.orm import Session

from models.semesters import Semester as SemesterModel


def find_semester_by_id(db: Session, semester_id: int) -> Optional[SemesterModel]:
    return db.query(SemesterModel).filter(SemesterModel.id == semester_id).first()


def find_active_semester(db: Session) -> Optional[SemesterModel]:
    # 매 요청마다 조회 (프로세스 전역 캐시 금지)
    return db.query(SemesterModel).filter(SemesterModel.is_active.is_(True)).first()


def list_semesters(db: Session) -> List[SemesterModel]:
    return db.query(SemesterModel).order_by(SemesterModel.start_date.desc()).all()
