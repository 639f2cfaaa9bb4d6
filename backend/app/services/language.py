# app/services/language.py
# 텍스트 → 언어 코드 (BCP-47). 사용자가 명시한 힌트가 항상 우선
# 감지 불가/매핑 없음 → "auto" (생성 모델이 문맥으로 판단)

from __future__ import annotations
from functools import lru_cache
from typing import Optional

from lingua import Language, LanguageDetector, LanguageDetectorBuilder

AUTO = "auto"
MIN_DETECT_LENGTH = 20

ISO3_TO_BCP = {
    "por": "pt-PT",
    "spa": "es-ES",
    "eng": "en-US",
    "fra": "fr-FR",
    "deu": "de-DE",
    "ita": "it-IT",
    "jpn": "ja-JP",
    "zho": "zh-CN",
    "kor": "ko-KR",
}

LANGUAGE_LABELS = {
    "pt-PT": "Portuguese",
    "es-ES": "Spanish",
    "en-US": "English",
    "fr-FR": "French",
    "de-DE": "German",
    "it-IT": "Italian",
    "ja-JP": "Japanese",
    "zh-CN": "Chinese",
    "ko-KR": "Korean",
}

# 매핑 대상 + 흔히 섞여 들어오는 언어 (오탐 방지용 후보군)
_CANDIDATES = (
    Language.PORTUGUESE, Language.SPANISH, Language.ENGLISH, Language.FRENCH,
    Language.GERMAN, Language.ITALIAN, Language.JAPANESE, Language.CHINESE,
    Language.KOREAN, Language.DUTCH, Language.RUSSIAN, Language.POLISH,
    Language.TURKISH, Language.ARABIC, Language.HINDI, Language.VIETNAMESE,
)


@lru_cache(maxsize=1)
def _detector() -> LanguageDetector:
    # 모델 로딩이 무거워 프로세스당 1회
    return LanguageDetectorBuilder.from_languages(*_CANDIDATES).build()


def detect_language(text: Optional[str], user_hint: Optional[str] = AUTO) -> str:
    if user_hint and user_hint != AUTO:
        return user_hint
    sample = (text or "").strip()
    if len(sample) < MIN_DETECT_LENGTH:
        return AUTO
    detected = _detector().detect_language_of(sample)
    if detected is None:
        return AUTO
    return ISO3_TO_BCP.get(detected.iso_code_639_3.name.lower(), AUTO)


def language_label(code: Optional[str]) -> str:
    # 프롬프트용 영어 언어명
    if code in LANGUAGE_LABELS:
        return LANGUAGE_LABELS[code]
    if code in ISO3_TO_BCP:
        return LANGUAGE_LABELS[ISO3_TO_BCP[code]]
    # 지역만 다른 태그 (pt-BR → Portuguese)
    prefix = (code or "")[:2].lower()
    for tag, label in LANGUAGE_LABELS.items():
        if code and code != AUTO and tag[:2].lower() == prefix:
            return label
    return "source language"
