# app/main.py
# FastAPI 앱 초기화 및 라우터 설정
# 라우터는 각 기능별로 분리하여 관리

from __future__ import annotations
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from app.api.routes_recipes import router as recipes_router
from app.core.config import settings
from app.core.deps import limiter, rate_limit_exceeded

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Recipe Ingest - API", version="0.1.0")

# 요청 한도 (slowapi)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status() -> dict:
    return {"status": "ok", "hasOpenAIKey": bool(settings.OPENAI_API_KEY)}


@app.get("/")
async def root():
    return _status()


@app.get("/health")
async def health():
    return _status()


# 라우터 prefix는 각 파일 내에서 정의함 , 중복 prefix 금지
app.include_router(recipes_router)
