"""
config/settings.py

- 학사 API 런타임 설정 (.env → Settings)
- 운영 DB 는 MySQL: DB_USER / DB_PASSWORD / DB_HOST / DB_PORT / DB_NAME 조합으로 URL 생성
- SQLITE_PATH 가 있으면 SQLite 사용 (로컬 실행, 테스트는 ":memory:")
- 학사 정책 값(학점 상한, 성적표 등)은 여기 말고 config/constants.py
"""

from typing import List, Optional, Literal
from pydantic import field_validator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # =========================
    # 앱/런타임
    # =========================
    ENV: Literal["dev", "stage", "prod"] = "dev"
    APP_TITLE: str = "Academic Records API"
    APP_DESCRIPTION: str = "수강신청 / 대기자 / 성적 / GPA 성적증명서 백엔드 API"
    APP_VERSION: str = "1.0.0"

    # =========================
    # CORS
    # =========================
    # 프론트엔드 주소 목록. .env 에서는 "http://a,http://b" 형태
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    # =========================
    # Database (MySQL)
    # =========================
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_NAME: str = "academics"

    # 로컬/테스트용: 값이 있으면 MySQL 대신 SQLite 파일 사용
    SQLITE_PATH: Optional[str] = None

    @computed_field  # type: ignore[misc]
    @property
    def DATABASE_URL(self) -> str:
        """SQLAlchemy 엔진 URL (SQLITE_PATH 우선)"""
        if self.SQLITE_PATH:
            return f"sqlite:///{self.SQLITE_PATH}"
        return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # =========================
    # 인증 게이트웨이
    # =========================
    # 앞단 게이트웨이가 붙여주는 Bearer 토큰. 비어 있으면 검사하지 않음
    INTERNAL_API_TOKEN: Optional[str] = None

    # =========================
    # 알림
    # =========================
    NOTIFICATIONS_ENABLED: bool = True

    # =========================
    # Logging / Misc
    # =========================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    SLOW_REQUEST_MS: int = 1000        # 이 이상 걸린 요청은 WARNING 로그

    # =========================
    # BaseSettings Config
    # =========================
    model_config = SettingsConfigDict(
        env_file=".env",               # .env에서 값 로드
        env_file_encoding="utf-8",
        case_sensitive=False,          # 환경변수 대소문자 비구분
        extra="ignore",                # 정의되지 않은 키는 무시
    )


# ✅ import 시점에 한 번 로드 (테스트는 import 전에 환경변수 지정)
settings = Settings()
