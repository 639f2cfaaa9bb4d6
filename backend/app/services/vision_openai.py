# app/services/vision_openai.py
# OpenAI 협력자: 레시피 생성 / 영양 추정 / 음성·영상 전사
# - Chat Completions + json_schema(비엄격) 응답 형식
# - JSON 파싱 실패 시 json_repair로 한 번 더 시도
# - 이미지는 data URL로 첨부, 오디오/영상은 전사 텍스트로 전달

from __future__ import annotations
import base64
import json
import logging
from typing import Any, Dict, List, Optional

import json_repair
from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from app.core.config import settings
from app.core.errors import GenerationError, GenerationNotReady
from app.models.schemas import MediaItem, NutritionEstimate
from app.services.language import AUTO
from app.services.prompts import NUTRITION_SYSTEM, RECIPE_SYSTEM, build_nutrition_prompt, transcription_prompt

log = logging.getLogger(__name__)

RAW_SNIPPET = 1000


def _client() -> AsyncOpenAI:
    if not settings.OPENAI_API_KEY:
        raise GenerationNotReady()
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


def _b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


RECIPE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "cuisine": {"type": "string"},
        "prepTime": {"type": "string"},
        "cookTime": {"type": "string"},
        "servings": {"type": "string"},
        "ingredients": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "amount": {"type": "string"},
                    "unit": {"type": "string"},
                    "notes": {"type": "string"},
                },
            },
        },
        "instructions": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "stepNumber": {"type": "integer"},
                    "description": {"type": "string"},
                    "timerSeconds": {"type": "integer"},
                },
            },
        },
        "nutrition": {
            "type": "object",
            "properties": {
                "calories": {"type": "string"},
                "protein": {"type": "string"},
                "carbs": {"type": "string"},
                "fats": {"type": "string"},
            },
        },
        "tags": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["title", "ingredients", "instructions"],
}

NUTRITION_ESTIMATE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "portionCount": {"type": "number"},
        "portionDescription": {"type": "string"},
        "totalCalories": {"type": "number"},
        "caloriesPerPortion": {"type": "number"},
        "reasoning": {"type": "string"},
    },
    "required": ["portionCount", "totalCalories", "caloriesPerPortion"],
}


def _response_format(name: str, schema: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "json_schema", "json_schema": {"name": name, "schema": schema, "strict": False}}


def _message_text(chat: Any) -> str:
    if not chat or not chat.choices:
        return ""
    return chat.choices[0].message.content or ""


def parse_model_json(text: str) -> Dict[str, Any]:
    """모델 출력 → dict. 깨진 JSON은 복구 시도, 그래도 객체가 아니면 GenerationError."""
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        obj = json_repair.repair_json(text, return_objects=True)
        if isinstance(obj, dict) and obj:
            log.warning("model JSON was repaired after initial parse failure (%s)", e)
        else:
            log.error("unable to parse model JSON (%s). raw snippet: %s", e, text[:RAW_SNIPPET])
    if not isinstance(obj, dict) or not obj:
        raise GenerationError()
    return obj


def _content_parts(media: List[MediaItem], prompt: str) -> List[Dict[str, Any]]:
    parts: List[Dict[str, Any]] = []
    for item in media:
        if not item.is_image:
            continue
        parts.append({
            "type": "image_url",
            "image_url": {"url": f"data:{item.mime_type};base64,{_b64(item.data)}"},
        })
    parts.append({"type": "text", "text": prompt})
    return parts


async def generate_recipe(media: List[MediaItem], prompt: str) -> Dict[str, Any]:
    """프롬프트 + 이미지 → 레시피 dict (아직 수리 전, 신뢰 불가)."""
    client = _client()
    try:
        chat = await client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": RECIPE_SYSTEM},
                {"role": "user", "content": _content_parts(media, prompt)},
            ],
            response_format=_response_format("recipe", RECIPE_SCHEMA),
        )
    except OpenAIError as e:
        log.exception("recipe generation request failed")
        raise GenerationError() from e

    text = _message_text(chat)
    if not text.strip():
        log.error("model returned an empty response. prompt: %s", prompt[:400])
        raise GenerationError()
    return parse_model_json(text)


async def request_nutrition_estimates(
    recipe: Dict[str, Any],
    language_code: str,
    context: Dict[str, str],
) -> Optional[NutritionEstimate]:
    # 실패해도 None (휴리스틱으로 대체됨)
    try:
        client = _client()
        chat = await client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": NUTRITION_SYSTEM},
                {"role": "user", "content": build_nutrition_prompt(recipe, language_code, context)},
            ],
            response_format=_response_format("nutrition_estimate", NUTRITION_ESTIMATE_SCHEMA),
        )
        text = _message_text(chat)
        if not text.strip():
            return None
        return NutritionEstimate.model_validate(parse_model_json(text))
    except (OpenAIError, GenerationError, GenerationNotReady, ValidationError) as e:
        log.warning("nutrition estimate failed: %s", e)
        return None


async def transcribe_media(item: MediaItem, language_hint: str = AUTO) -> str:
    """오디오/영상 → 전사 텍스트. 실패 시 예외 (호출부에서 항목별로 처리)."""
    client = _client()
    kwargs: Dict[str, Any] = {
        "model": settings.OPENAI_TRANSCRIBE_MODEL,
        "file": (item.filename, item.data, item.mime_type),
        "prompt": transcription_prompt(language_hint),
    }
    if language_hint and language_hint != AUTO:
        kwargs["language"] = language_hint[:2].lower()
    result = await client.audio.transcriptions.create(**kwargs)
    return (getattr(result, "text", "") or "").strip()
