from database.db import Base, engine

# ✅ 모든 모델을 import 해야 테이블이 메타데이터에 등록됨
from models import assessments, courses, enrollments, notifications, prerequisites, semesters, users  # noqa: F401


def init_db():
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    init_db()
    print("✅ 테이블 생성 완료")
