# app/services/pipeline.py
# 요청 1건 처리 흐름 (모든 상태는 요청 안에서만)
#   원격 URL 수집 → 입력 확인 → 전사/OCR 병렬 → 언어 감지 → 생성 → 수리/정규화
#   → 영양 추정(실패 무시) → 인분/칼로리 라벨 → 커버 프레임(실패 무시)

from __future__ import annotations
import asyncio
import logging
from typing import List, Optional

from app.core.config import settings
from app.core.errors import AcquisitionError, GenerationNotReady, InputValidationError
from app.models.schemas import IngestRequest, MediaItem, RecipeMetadata, RecipeResponse, RemoteContent
from app.services import cover_frame, media_fetch, vision_google, vision_openai
from app.services.language import detect_language, language_label
from app.services.nutrition import enhance_nutrition_and_servings
from app.services.prompts import build_prompt
from app.services.repair import normalize_recipe

log = logging.getLogger(__name__)


def _join(parts, sep: str) -> str:
    return sep.join(p for p in parts if p)


async def _safe_transcribe(item: MediaItem, language_hint: str) -> str:
    try:
        return await vision_openai.transcribe_media(item, language_hint)
    except Exception as e:
        # 항목 하나 실패는 빈 전사로 대체
        log.warning("transcription failed for %s: %s", item.filename, e)
        return ""


async def _safe_ocr(item: MediaItem) -> str:
    try:
        return await vision_google.extract_ocr(item)
    except Exception as e:
        log.warning("OCR failed for %s: %s", item.filename, e)
        return ""


async def _cover_image(media: List[MediaItem], fallback: Optional[str]) -> Optional[str]:
    video = next((m for m in media if m.is_video), None)
    cover = None
    if video is not None:
        ext = video.filename.rsplit(".", 1)[-1] if "." in video.filename else "mp4"
        try:
            cover = await cover_frame.capture_video_frame(video.data, ext)
        except Exception as e:
            log.warning("unable to capture cover frame: %s", e)
    return cover or fallback


async def run_ingestion(req: IngestRequest) -> RecipeResponse:
    remote = RemoteContent()
    remote_error: Optional[AcquisitionError] = None
    if req.remoteUrl:
        try:
            remote = await media_fetch.acquire_remote(req.remoteUrl)
        except AcquisitionError as e:
            remote_error = e

    media = [*req.files, *remote.media]
    text_input = _join([req.textInput.strip(), remote.text], "\n\n")
    if not media and not text_input:
        if remote_error is not None:
            raise remote_error
        raise InputValidationError()
    if remote_error is not None:
        log.warning("remote URL ignored, other content present: %s", remote_error.message)
    if not settings.OPENAI_API_KEY:
        raise GenerationNotReady()

    hint = req.languageHint or "auto"
    transcripts, ocr_blocks = await asyncio.gather(
        asyncio.gather(*(_safe_transcribe(m, hint) for m in media if m.is_video or m.is_audio)),
        asyncio.gather(*(_safe_ocr(m) for m in media if m.is_image)),
    )
    transcript_text = _join(transcripts, "\n")
    ocr_text = _join(ocr_blocks, "\n")
    combined = _join([text_input, transcript_text, ocr_text], "\n")

    language_code = detect_language(combined, hint)
    source_url = req.sourceUrl or req.remoteUrl
    log.info("generating recipe: media=%d language=%s (%s)", len(media), language_code, language_label(language_code))
    prompt = build_prompt(
        language_code,
        transcript_text=transcript_text,
        ocr_text=ocr_text,
        text_input=text_input,
        user_instructions=req.userInstructions,
        source_url=source_url,
    )
    raw = await vision_openai.generate_recipe(media, prompt)
    recipe = normalize_recipe(raw, language_code)

    estimate = None
    try:
        estimate = await vision_openai.request_nutrition_estimates(
            recipe.model_dump(exclude_none=True),
            language_code,
            {
                "transcript_text": transcript_text,
                "ocr_text": ocr_text,
                "text_input": text_input,
                "user_instructions": req.userInstructions,
                "source_url": source_url,
            },
        )
    except Exception as e:
        log.warning("AI nutrition estimate failed: %s", e)
    recipe = enhance_nutrition_and_servings(recipe, language_code, estimate)

    cover = await _cover_image(media, remote.image)
    recipe = recipe.model_copy(update={
        "sourceUrl": source_url or None,
        "languageCode": language_code,
        "transcript": transcript_text,
        "ocrText": ocr_text,
        "imageUrl": cover,
    })
    return RecipeResponse(
        recipe=recipe,
        metadata=RecipeMetadata(
            transcript=transcript_text,
            ocrText=ocr_text,
            languageCode=language_code,
            coverImage=cover,
        ),
    )
