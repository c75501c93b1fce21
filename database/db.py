from contextlib import contextmanager

from sqlalchemy import create_engine, event       # SQLAlchemy 엔진 생성 도구
from sqlalchemy.orm import declarative_base         # 모델의 Base 클래스
from sqlalchemy.orm import sessionmaker             # 세션 팩토리 함수

from config.settings import settings                # ✅ 환경변수 설정 파일 불러오기


def make_engine(url: str, **kwargs):
    """
    엔진 생성.
    - SQLite 파일 DB 는 SELECT ... FOR UPDATE 를 지원하지 않으므로
      트랜잭션을 BEGIN IMMEDIATE 로 시작해서 쓰기 트랜잭션을 직렬화한다.
    - 메모리 DB(연결 1개 공유)는 동시 접근이 없으므로 pysqlite 기본 동작 유지
    - 그 외(MySQL)는 READ COMMITTED: 잠금 이후 조회가 최신 커밋을 보도록
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        eng = create_engine(url, connect_args=connect_args, **kwargs)
        if url in ("sqlite://", "sqlite:///:memory:"):
            return eng

        @event.listens_for(eng, "connect")
        def _disable_pysqlite_begin(dbapi_connection, connection_record):
            # pysqlite 자체 BEGIN 비활성화 → 아래 begin 이벤트에서 직접 발행
            dbapi_connection.isolation_level = None

        @event.listens_for(eng, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return eng

    # MySQL(InnoDB) 기본 REPEATABLE READ 는 첫 SELECT 시점 스냅샷을 계속 읽음
    # → 과목 잠금을 얻은 뒤의 정원 집계가 다른 트랜잭션의 커밋을 못 봄
    kwargs.setdefault("isolation_level", "READ COMMITTED")
    return create_engine(url, pool_pre_ping=True, **kwargs)


# ✅ 환경변수에서 DB 연결 URL을 불러와 엔진 생성
engine = make_engine(settings.DATABASE_URL)

# ✅ 세션 팩토리: DB 연결에 사용할 세션 생성기 정의
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ 모델 정의 시 상속할 Base 클래스 (Declarative 방식 사용)
Base = declarative_base()


# ==========================================================
# [공통] DB 세션 관리 (라우터 Depends 용)
# ==========================================================
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db):
    """
    서비스 단위 트랜잭션
    - 블록이 정상 종료되면 commit, 예외가 나면 rollback 후 그대로 전파
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
