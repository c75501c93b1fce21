import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail, ErrorResponse
from utils.errors import AppError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error: dict) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(**error))
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body, exclude_none=True))


def add_error_handlers(app: FastAPI):
    # ✅ 업무 규칙 거절 (NOT_FOUND, CONFLICT, CREDIT_LIMIT_EXCEEDED ...)
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        logger.info("요청 거절 %s %s → %s: %s", request.method, request.url.path, exc.code, exc.message)
        return _error_response(exc.status_code, exc.to_response()["error"])

    # ✅ 요청 스키마 검증 실패
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error_response(422, {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request",
            "details": {"errors": jsonable_encoder(exc.errors())},
        })

    # ✅ 예기치 못한 오류 (DB 오류 등) → INTERNAL_ERROR 로 감싸고 원본은 로그로만
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("처리되지 않은 예외: %s %s", request.method, request.url.path)
        return _error_response(500, {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"})
