# 공용 의존성/헬퍼 (요청 한도)
# 한도 초과 요청은 파이프라인에 들어가기 전에 즉시 거절(대기열 없음)
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.core.config import settings

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."

def client_identity(request: Request) -> str:
    # 요청 주체 식별 (프록시 헤더는 신뢰하지 않음)
    return get_remote_address(request)

limiter = Limiter(key_func=client_identity)

def rate_limit_exceeded(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # 다른 오류와 구분되는 메시지 + 재시도 시점
    retry_after = exc.limit.limit.get_expiry()
    return JSONResponse(
        {"detail": RATE_LIMIT_MESSAGE, "limit": settings.RATE_LIMIT},
        status_code=429,
        headers={"Retry-After": str(retry_after)},
    )
