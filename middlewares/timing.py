import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from config.settings import settings

logger = logging.getLogger(__name__)


class TimingMiddleware(BaseHTTPMiddleware):
    """응답 헤더에 X-Latency-Ms 추가, 느린 요청은 WARNING 로그"""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = int((time.perf_counter() - start) * 1000)
        response.headers["X-Latency-Ms"] = str(latency_ms)

        if latency_ms >= settings.SLOW_REQUEST_MS:
            logger.warning("느린 요청 %s %s %dms", request.method, request.url.path, latency_ms)
        else:
            logger.debug("%s %s %d %dms", request.method, request.url.path, response.status_code, latency_ms)
        return response
