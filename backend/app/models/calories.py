# app/models/calories.py
# 재료 키워드 → 칼로리/밀도 프로필, 조리법 보정, 소형 간식 1개 무게
# 모두 "앞에서부터 첫 매칭" 순서 목록 (dict 아님: 순서가 우선순위)
# 키워드/정규식은 시드 데이터 (운영 로그 보고 점진 추가)

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple

DEFAULT_CALORIES_PER_GRAM = 1.2
DEFAULT_UNIT_MASS = 60.0        # g, 매칭 안 되는 "1개"
DEFAULT_CAN_MASS = 395.0        # g, 캔/연유 한 통
GRAMS_PER_SERVING = 250.0
FALLBACK_KCAL_PER_SERVING = 200
DEFAULT_SERVINGS = 4


@dataclass(frozen=True)
class CalorieProfile:
    keywords: Tuple[str, ...]
    calories_per_gram: Optional[float] = None
    calories_per_ml: Optional[float] = None
    calories_per_unit: Optional[float] = None
    density: Optional[float] = None          # g/ml
    grams_per_unit: Optional[float] = None

    def __post_init__(self) -> None:
        if not (self.calories_per_gram or self.calories_per_ml or self.calories_per_unit):
            raise ValueError(f"calorie profile {self.keywords!r} has no calorie rate")

    def matches(self, lowered_name: str) -> bool:
        return any(k in lowered_name for k in self.keywords)


# 구체적인 키워드가 먼저 (예: "leite condensado"/"coconut milk"가 "milk"/"leite"보다 앞)
CALORIE_PROFILES: Tuple[CalorieProfile, ...] = (
    CalorieProfile(("sweetened condensed milk", "condensed milk", "leite condensado", "leche condensada"),
                   calories_per_gram=3.2, grams_per_unit=395),
    CalorieProfile(("coconut milk", "leite de coco", "leche de coco", "lait de coco"), calories_per_ml=2.3, density=1),
    CalorieProfile(("doce de leite", "dulce de leche"), calories_per_gram=3.2),
    CalorieProfile(("cream cheese", "requeijão", "queijo creme"), calories_per_gram=3.5),
    CalorieProfile(("sugar", "açúcar", "azúcar", "sucre"), calories_per_gram=3.87, density=0.85),
    CalorieProfile(("milk", "leite integral", "whole milk", "leite", "leche", "lait"),
                   calories_per_ml=0.64, density=1.03),
    CalorieProfile(("cream", "creme de leite", "nata", "crème"), calories_per_ml=3.4, density=1.01),
    CalorieProfile(("butter", "manteiga", "ghee", "mantequilla", "beurre"), calories_per_gram=7.17),
    CalorieProfile(("flour", "farinha", "farinha de trigo", "harina", "farine"), calories_per_gram=3.64),
    CalorieProfile(("egg", "ovo", "huevo", "oeuf", "œuf"), calories_per_unit=72, grams_per_unit=50),
    CalorieProfile(("oil", "óleo", "azeite", "aceite", "huile"), calories_per_ml=8.0, density=0.91),
    CalorieProfile(("chocolate", "cacau", "cacao"), calories_per_gram=5.46),
)

# 조리법 보정: 여러 개 매칭되면 곱으로 누적
COOKING_METHOD_MULTIPLIERS: Tuple[Tuple[Pattern[str], float], ...] = (
    (re.compile(r"(frit|deep\s?fry|fried|óleo quente|saltear|sauté)", re.I), 1.12),
    (re.compile(r"(assar|forno|bake|roast|oven|horno)", re.I), 1.02),
)

# 소형 간식: 1개 무게(g). 첫 매칭만 사용
SMALL_TREAT_PORTIONS: Tuple[Tuple[Pattern[str], float], ...] = (
    (re.compile(r"\b(bombones?|brigadeir[oa]s?|trufas?|truffles?|bites?|bolinhas|docinhos|brigadiers)", re.I), 22),
    (re.compile(r"\b(cookies?|gallet[ai]tas?|biscuits?)", re.I), 32),
    (re.compile(r"\b(muffins?|cupcakes?)", re.I), 60),
    (re.compile(r"\b(bars?|barras?|brownies?)\b", re.I), 45),
)


def find_calorie_profile(name: str) -> Optional[CalorieProfile]:
    lowered = (name or "").lower()
    for profile in CALORIE_PROFILES:
        if profile.matches(lowered):
            return profile
    return None
