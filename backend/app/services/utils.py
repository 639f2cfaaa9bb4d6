# app/services/utils.py
# 조리 단계 문장 정리 유틸
# - 추임새/욕설 제거, 공백/구두점 간격 정리
# - "하룻밤 휴지" 같은 장시간 대기 감지 → 짧은 타이머 대신 타이머 없음
# 확장: FILLER_PATTERNS / LONG_REST_KEYWORDS 는 언어별로 계속 추가

from __future__ import annotations
import re
import unicodedata
from typing import Optional

MAX_TIMER_SECONDS = 4 * 60 * 60   # 4시간
LONG_REST_HOURS = 5

FILLER_PATTERNS = [
    re.compile(r"\b(?:ha){2,}h?\b", re.I),
    re.compile(r"\b(?:he){2,}h?\b", re.I),
    re.compile(r"\b(?:ja){2,}\b", re.I),
    re.compile(r"\bk{3,}\b", re.I),
    re.compile(r"\blol\b", re.I),
    re.compile(r"\bcaralho\b", re.I),
    re.compile(r"\bfoda-se\b", re.I),
    re.compile(r"\bputa que pariu\b", re.I),
]

LONG_REST_KEYWORDS = (
    "overnight", "rest overnight",
    "durante a noite", "noite toda", "pernoite", "descansar a noite",
    "toda la noche", "durante la noche",
    "toute la nuit",
)

_HOUR_UNIT = r"(?:hours?|hrs?|horas?|heures?|h)\b"
HOURS_INTERVAL_RE = re.compile(
    rf"(\d+(?:[.,]\d+)?)\s*(?:-|–|a|à|to)\s*(\d+(?:[.,]\d+)?)\s*{_HOUR_UNIT}", re.I
)
HOURS_RE = re.compile(rf"(\d+(?:[.,]\d+)?)\s*{_HOUR_UNIT}", re.I)


def strip_diacritics(value: str) -> str:
    # NFD 분해 후 결합 문자 제거 ("xícara" → "xicara")
    decomposed = unicodedata.normalize("NFD", value or "")
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _to_float(token: str) -> float:
    return float(token.replace(",", "."))


def clean_instruction_description(text: Optional[str]) -> str:
    if not text:
        return ""
    cleaned = re.sub(r"\s+", " ", str(text)).strip()
    for pattern in FILLER_PATTERNS:
        cleaned = pattern.sub("", cleaned).strip()
    cleaned = re.sub(r"\s{2,}", " ", cleaned)
    cleaned = re.sub(r"\s+([,.;:!?])", r"\1", cleaned)
    return cleaned.strip()


def mentions_long_rest(description: Optional[str]) -> bool:
    """키워드("overnight" 등) 또는 5시간 이상 언급(구간이면 어느 한쪽이라도)이면 True."""
    if not description:
        return False
    lowered = description.lower()
    if any(keyword in lowered for keyword in LONG_REST_KEYWORDS):
        return True

    for interval in HOURS_INTERVAL_RE.finditer(description):
        if _to_float(interval.group(1)) >= LONG_REST_HOURS or _to_float(interval.group(2)) >= LONG_REST_HOURS:
            return True
    return any(_to_float(m.group(1)) >= LONG_REST_HOURS for m in HOURS_RE.finditer(description))


def coerce_timer(value) -> Optional[int]:
    # (0, 4시간] 범위 정수만 유효. 나머지는 None
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if seconds != seconds or seconds <= 0 or seconds > MAX_TIMER_SECONDS:
        return None
    rounded = int(seconds + 0.5)
    return rounded if rounded > 0 else None
