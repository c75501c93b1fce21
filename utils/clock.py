from datetime import datetime, timezone


def utcnow() -> datetime:
    """DB 저장용 현재 시각 (UTC, tz 정보 제거)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
