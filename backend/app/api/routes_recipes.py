# app/api/routes_recipes.py
# 업로드/텍스트/원격 URL → 구조화 레시피 1건
# 요청 한도는 파이프라인 진입 전에 검사 (초과 시 429)

from __future__ import annotations
from typing import List, Optional
import logging

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from app.core.config import settings
from app.core.deps import limiter
from app.core.errors import IngestError, InputValidationError, UploadTooLarge
from app.models.schemas import IngestRequest, MediaItem, RecipeResponse
from app.services.media_fetch import guess_mime_type
from app.services.pipeline import run_ingestion

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["recipes"])


def _too_large(f: UploadFile) -> str:
    return f"{f.filename or 'file'} exceeds the {settings.MAX_UPLOAD_BYTES // (1024 * 1024)} MB limit."


async def _read_uploads(files: List[UploadFile]) -> List[MediaItem]:
    files = [f for f in files if f is not None]
    if len(files) > settings.MAX_UPLOAD_FILES:
        raise InputValidationError(f"At most {settings.MAX_UPLOAD_FILES} files can be uploaded at once.")

    items: List[MediaItem] = []
    for f in files:
        # 크기를 알면 읽기 전에 거부
        if f.size is not None and f.size > settings.MAX_UPLOAD_BYTES:
            raise UploadTooLarge(_too_large(f))
        data = await f.read()
        if len(data) > settings.MAX_UPLOAD_BYTES:
            raise UploadTooLarge(_too_large(f))
        if not data:
            # 빈 파트는 건너뜀 (브라우저가 빈 파일 필드를 보내는 경우)
            continue
        filename = f.filename or "media"
        items.append(MediaItem(data=data, mime_type=guess_mime_type(filename, f.content_type), filename=filename))
    return items


@router.post("/recipes", response_model=RecipeResponse)
@limiter.limit(settings.RATE_LIMIT)
async def create_recipe(
    request: Request,
    media: Optional[List[UploadFile]] = File(None),
    textInput: str = Form(""),
    userInstructions: str = Form(""),
    languageHint: str = Form("auto"),
    sourceUrl: str = Form(""),
    remoteUrl: str = Form(""),
):
    try:
        req = IngestRequest(
            files=await _read_uploads(media or []),
            textInput=textInput,
            userInstructions=userInstructions.strip(),
            languageHint=languageHint.strip() or "auto",
            sourceUrl=sourceUrl.strip(),
            remoteUrl=remoteUrl.strip(),
        )
        return await run_ingestion(req)
    except IngestError as e:
        if e.status_code >= 500:
            log.error("recipe generation failed: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message)
