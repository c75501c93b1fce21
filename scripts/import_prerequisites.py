import csv
import sys

from sqlalchemy.orm import Session
from database.db import SessionLocal
from models.prerequisites import CoursePrerequisite as PrerequisiteModel  # ✅ 모델 import

CSV_PATH = "data/prerequisites.csv"  # ✅ 파일 경로 (컬럼: course_code, prerequisite_code)


def import_prerequisites(db: Session, csv_path: str) -> int:
    """
    선수과목 CSV → DB
    - 자기 자신을 선수과목으로 지정한 행, 이미 있는 간선은 건너뜀
    - 추가한 행 수 반환
    """
    existing = {
        (p.course_code, p.prerequisite_code)
        for p in db.query(PrerequisiteModel).all()
    }

    added = 0
    with open(csv_path, newline="", encoding="utf-8-sig") as csvfile:
        reader = csv.DictReader(csvfile)
        for row in reader:
            course_code = row["course_code"].strip().upper()           # 대상 과목 코드
            prerequisite_code = row["prerequisite_code"].strip().upper()  # 선수과목 코드
            key = (course_code, prerequisite_code)
            if not course_code or not prerequisite_code or course_code == prerequisite_code or key in existing:
                continue
            db.add(PrerequisiteModel(course_code=course_code, prerequisite_code=prerequisite_code))
            existing.add(key)
            added += 1

    db.commit()
    return added


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else CSV_PATH
    db = SessionLocal()
    try:
        count = import_prerequisites(db, path)
    finally:
        db.close()
    print(f"✅ 선수과목 CSV → DB 마이그레이션 완료 ({count}건 추가)")
