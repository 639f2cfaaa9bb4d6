# app/services/vision_google.py
# Google Cloud Vision 문서 OCR: 이미지 속 모든 글자를 읽기 순서대로

from __future__ import annotations
import asyncio
import logging
import os

from google.cloud import vision

from app.core.config import settings
from app.models.schemas import MediaItem

logger = logging.getLogger(__name__)


class VisionNotReady(Exception):
    """Vision API가 준비되지 않았을 때 발생하는 예외"""
    pass


def _get_vision_client() -> vision.ImageAnnotatorClient:
    credentials = settings.GOOGLE_APPLICATION_CREDENTIALS or os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    if not credentials:
        raise VisionNotReady("GOOGLE_APPLICATION_CREDENTIALS not set")
    return vision.ImageAnnotatorClient.from_service_account_file(credentials)


def _detect_text(image_bytes: bytes) -> str:
    client = _get_vision_client()
    response = client.document_text_detection(image=vision.Image(content=image_bytes))
    if response.error.message:
        raise RuntimeError(f"Vision API error: {response.error.message}")
    if response.full_text_annotation and response.full_text_annotation.text:
        return response.full_text_annotation.text
    if response.text_annotations:
        return response.text_annotations[0].description
    return ""


async def extract_ocr(item: MediaItem) -> str:
    """이미지 → 원문 텍스트. 실패 시 예외 (호출부에서 항목별로 처리)."""
    # 동기 gRPC 클라이언트 → 스레드에서 실행
    text = await asyncio.to_thread(_detect_text, item.data)
    logger.debug("OCR %s: %d chars", item.filename, len(text))
    return text.strip()
