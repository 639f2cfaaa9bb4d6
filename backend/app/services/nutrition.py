# app/services/nutrition.py
# 재료별 질량/칼로리 추정 → 레시피 합산 → 인분 수/칼로리 라벨
# 우선순위: 외부 추정(인분 수) > 간식 휴리스틱 > 질량/250g > 레시피에 적힌 인분 > 4인분

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from typing import Optional

from app.models.calories import (
    COOKING_METHOD_MULTIPLIERS,
    DEFAULT_CALORIES_PER_GRAM,
    DEFAULT_CAN_MASS,
    DEFAULT_SERVINGS,
    DEFAULT_UNIT_MASS,
    FALLBACK_KCAL_PER_SERVING,
    GRAMS_PER_SERVING,
    SMALL_TREAT_PORTIONS,
    CalorieProfile,
    find_calorie_profile,
)
from app.models.schemas import NutritionEstimate, Recipe
from app.models.units import UNIT_FACTORS, VOLUME, WEIGHT
from app.services.amounts import (
    is_negligible,
    normalize_unit,
    parse_amount,
    parse_servings_count,
    round_half_up,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Contribution:
    calories: float
    grams: float


@dataclass(frozen=True)
class HeuristicSnapshot:
    total_calories: float
    total_mass: float
    mass_based_servings: Optional[int]
    treat_based_servings: Optional[int]


# ---------------------------------------------------------------------
# 라벨 (pt/es/fr, 그 외 en)
# ---------------------------------------------------------------------
_LABELS = {
    "pt": ("~{n} porções", "{kcal} kcal por porção (~{n} porções)", "{total} kcal no total"),
    "es": ("~{n} porciones", "{kcal} kcal por porción (~{n} porciones)", "{total} kcal en total"),
    "fr": ("~{n} portions", "{kcal} kcal par portion (~{n} portions)", "{total} kcal au total"),
    "en": ("~{n} servings", "{kcal} kcal per serving (~{n} servings)", "{total} kcal total"),
}


def _labels(language_code: Optional[str]):
    prefix = (language_code or "")[:2].lower()
    return _LABELS.get(prefix, _LABELS["en"])


def format_servings_label(count: int, language_code: Optional[str]) -> str:
    return _labels(language_code)[0].format(n=count)


def format_calories_label(per_serving: int, servings: int, language_code: Optional[str]) -> str:
    return _labels(language_code)[1].format(kcal=per_serving, n=servings)


def format_total_calories_label(total: int, language_code: Optional[str]) -> str:
    return _labels(language_code)[2].format(total=total)


# ---------------------------------------------------------------------
# 재료 1개
# ---------------------------------------------------------------------
def resolve_amount(name, amount, unit) -> float:
    # a gosto/q.b. → 0, 수량 필드 → 이름 안의 숫자 → 기본 1
    if is_negligible(amount, unit):
        return 0.0
    parsed = parse_amount(amount)
    if parsed is None:
        parsed = parse_amount(name)
    return parsed if parsed is not None else 1.0


def _per_gram(profile: Optional[CalorieProfile]) -> float:
    return (profile and profile.calories_per_gram) or DEFAULT_CALORIES_PER_GRAM


def _unit_mass(profile: Optional[CalorieProfile]) -> float:
    return (profile and profile.grams_per_unit) or DEFAULT_UNIT_MASS


def estimate_ingredient_contribution(name, amount, unit) -> Contribution:
    qty = resolve_amount(name, amount, unit)
    if not qty:
        return Contribution(calories=0.0, grams=0.0)

    profile = find_calorie_profile(str(name or ""))
    unit_key = normalize_unit(unit)
    unit_info = UNIT_FACTORS.get(unit_key)
    grams = 0.0
    calories = 0.0

    if unit_key == "unit" and profile and profile.calories_per_unit:
        grams = _unit_mass(profile) * qty
        calories = profile.calories_per_unit * qty
    elif unit_key == "can":
        grams = ((profile and profile.grams_per_unit) or DEFAULT_CAN_MASS) * qty
        calories = grams * _per_gram(profile)
    elif unit_info and unit_info.kind == WEIGHT:
        grams = qty * unit_info.factor
        calories = grams * _per_gram(profile)
    elif unit_info and unit_info.kind == VOLUME:
        ml = qty * unit_info.factor
        grams = ml * ((profile and profile.density) or 1)
        if profile and profile.calories_per_ml:
            calories = ml * profile.calories_per_ml
        else:
            calories = grams * _per_gram(profile)
    elif profile and profile.calories_per_unit:
        grams = _unit_mass(profile) * qty
        calories = profile.calories_per_unit * qty

    if not grams:
        grams = qty * _unit_mass(profile)
    if not calories:
        calories = grams * _per_gram(profile)
    return Contribution(calories=calories, grams=grams)


# ---------------------------------------------------------------------
# 레시피 합산
# ---------------------------------------------------------------------
def _instructions_text(recipe: Recipe) -> str:
    return " ".join(step.description or "" for step in recipe.instructions)


def detect_treat_portion_mass(recipe: Recipe) -> Optional[float]:
    haystack = f"{recipe.title} {' '.join(recipe.tags)} {_instructions_text(recipe)}".lower()
    for pattern, grams_per_unit in SMALL_TREAT_PORTIONS:
        if pattern.search(haystack):
            return grams_per_unit
    return None


def cooking_method_multiplier(text: str) -> float:
    boost = 1.0
    for pattern, multiplier in COOKING_METHOD_MULTIPLIERS:
        if pattern.search(text):
            boost *= multiplier
    return boost


def estimate_calories_and_servings(recipe: Recipe) -> HeuristicSnapshot:
    total_calories = 0.0
    total_mass = 0.0
    for item in recipe.ingredients:
        c = estimate_ingredient_contribution(item.name, item.amount, item.unit)
        total_calories += c.calories
        total_mass += c.grams

    total_calories *= cooking_method_multiplier(_instructions_text(recipe))
    mass_based = max(1, round_half_up(total_mass / GRAMS_PER_SERVING)) if total_mass > 0 else None
    treat_mass = detect_treat_portion_mass(recipe)
    treat_based = max(1, round_half_up(total_mass / treat_mass)) if treat_mass and total_mass > 0 else None
    return HeuristicSnapshot(
        total_calories=total_calories,
        total_mass=total_mass,
        mass_based_servings=mass_based,
        treat_based_servings=treat_based,
    )


def _positive(value: Optional[float]) -> Optional[float]:
    # inf/nan은 없는 값으로 취급
    return value if value is not None and math.isfinite(value) and value > 0 else None


def enhance_nutrition_and_servings(
    recipe: Recipe,
    language_code: Optional[str],
    estimate: Optional[NutritionEstimate] = None,
) -> Recipe:
    """servings / nutrition.calories / nutrition.totalCalories 라벨을 채운 새 Recipe 반환."""
    snapshot = estimate_calories_and_servings(recipe)

    if estimate is not None and _positive(estimate.portionCount):
        # 외부 추정의 인분 수가 최우선
        servings = max(1, round_half_up(estimate.portionCount))
        per_portion = _positive(estimate.caloriesPerPortion)
        per_serving = round_half_up(per_portion) if per_portion else None
        total_raw = _positive(estimate.totalCalories)
        total = round_half_up(total_raw) if total_raw else None

        if not per_serving:
            if total:
                per_serving = max(1, round_half_up(total / servings))
            elif snapshot.total_calories:
                per_serving = max(1, round_half_up(snapshot.total_calories / servings))
            else:
                per_serving = FALLBACK_KCAL_PER_SERVING
        if not total:
            total = per_serving * servings
        total = max(1, total)
        servings_label = (estimate.portionDescription or "").strip() or format_servings_label(servings, language_code)
        log.info("nutrition from external estimate: servings=%d kcal/serving=%d", servings, per_serving)
    else:
        parsed = parse_servings_count(recipe.servings)
        servings = snapshot.treat_based_servings or snapshot.mass_based_servings or parsed or DEFAULT_SERVINGS
        total = max(1, round_half_up(snapshot.total_calories or servings * FALLBACK_KCAL_PER_SERVING))
        per_serving = max(1, round_half_up(total / servings))
        servings_label = format_servings_label(servings, language_code)

    nutrition = recipe.nutrition.model_copy(update={
        "calories": format_calories_label(per_serving, servings, language_code),
        "totalCalories": format_total_calories_label(total, language_code),
    })
    return recipe.model_copy(update={"servings": servings_label, "nutrition": nutrition})
