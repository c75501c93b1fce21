"""
utils/errors.py

- 서비스 레이어 전반에서 쓰는 업무 규칙 예외 모음
- 각 예외는 에러 코드 / HTTP 상태 / 사람이 읽을 메시지 / (선택) details 를 가짐
- 재시도 대상이 아님 (일시 장애가 아니라 업무 규칙 거절)
"""

from typing import Any, Dict, Optional


class AppError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"success": False, "error": error}


class UnauthorizedError(AppError):
    code = "UNAUTHORIZED"
    status_code = 401


class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code = 403


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = 404


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = 409


class EnrollmentClosedError(AppError):
    code = "ENROLLMENT_CLOSED"
    status_code = 400


class CreditLimitExceededError(AppError):
    code = "CREDIT_LIMIT_EXCEEDED"
    status_code = 400


def to_app_error(exc: BaseException) -> AppError:
    """알 수 없는 예외를 INTERNAL_ERROR 로 감싼다 (원본 예외 타입은 밖으로 노출하지 않음)"""
    if isinstance(exc, AppError):
        return exc
    return AppError("An unexpected error occurred")
