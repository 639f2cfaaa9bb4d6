# app/services/amounts.py
# 수량 문자열 → 숫자, 단위 문자열 → 표준 단위키
# - "1 1/2", "½", "2-3", "1,5", "2 a 3" 등 자유 형식 처리
# - 파싱 실패는 None (0/음수/비정상 값도 None)

from __future__ import annotations
import math
import re
from typing import Optional

from app.models.units import FRACTION_CHARS, UNIT_ALIASES
from app.services.utils import strip_diacritics

RANGE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(?:-|–|a|à|to)\s*(\d+(?:\.\d+)?)$", re.I)
MIXED_FRACTION_RE = re.compile(r"(\d+)\s+(\d+)/(\d+)")
FRACTION_RE = re.compile(r"(\d+)/(\d+)")
NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")

# "a gosto", "q.b." 등 → 기여량 0
NEGLIGIBLE_RE = re.compile(
    r"(to taste|as needed|a gosto|a seu gosto|al gusto|au go[uû]t|\bq\.?b\.?(?!\w))", re.I
)

# 별칭 정규화는 한 번만 (선언 순서 유지)
_ALIAS_TABLE = tuple(
    (key, tuple(strip_diacritics(alias.lower()) for alias in aliases))
    for key, aliases in UNIT_ALIASES.items()
)


def replace_unicode_fractions(value: str) -> str:
    return "".join(f" {FRACTION_CHARS[ch]} " if ch in FRACTION_CHARS else ch for ch in value)


def _mixed(match: re.Match) -> str:
    whole, num, den = (int(g) for g in match.groups())
    return str(whole + num / den) if den else str(whole)


def _simple(match: re.Match) -> str:
    num, den = (int(g) for g in match.groups())
    return str(num / den) if den else ""


def parse_amount(value) -> Optional[float]:
    """자유 형식 수량 → 양의 유한수. 구간은 평균, 앞의 숫자 토큰 최대 2개 합."""
    if value is None:
        return None
    text = replace_unicode_fractions(str(value)).replace(",", ".").strip()
    if not text:
        return None

    ranged = RANGE_RE.match(text)
    if ranged:
        return (float(ranged.group(1)) + float(ranged.group(2))) / 2

    text = MIXED_FRACTION_RE.sub(_mixed, text)
    text = FRACTION_RE.sub(_simple, text)
    tokens = NUMBER_RE.findall(text)
    if not tokens:
        return None
    total = sum(float(t) for t in tokens[:2])
    return total if math.isfinite(total) and total > 0 else None


def is_negligible(amount, unit) -> bool:
    combined = f"{amount or ''} {unit or ''}"
    return bool(NEGLIGIBLE_RE.search(combined))


def normalize_unit(unit) -> str:
    # 매칭 없으면 소문자/trim 원문 그대로
    trimmed = str(unit or "").lower().strip()
    if not trimmed:
        return ""
    source = strip_diacritics(trimmed)
    for key, aliases in _ALIAS_TABLE:
        for alias in aliases:
            if source == alias or (len(alias) > 1 and alias in source):
                return key
    return trimmed


def parse_servings_count(value) -> Optional[int]:
    # "serves 4", "6-8 porções" → 첫 숫자 반올림
    if not value:
        return None
    match = re.search(r"(\d+(?:\.\d+)?)", str(value).replace(",", "."))
    if not match:
        return None
    parsed = round_half_up(float(match.group(1)))
    return parsed if parsed > 0 else None


def round_half_up(value: float) -> int:
    # 0.5는 올림 (파이썬 round()의 은행가 반올림과 다름)
    return int(math.floor(value + 0.5))
