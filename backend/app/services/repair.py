# app/services/repair.py
# 생성 모델이 돌려준 레시피 JSON(신뢰 불가) → 표시 가능한 Recipe
# - 빈 단계 설명/재료명 → 번호 붙은 자리표시자 (직접 수정 필요 표시)
# - 단계 문장 정리, 장시간 휴지 단계는 타이머 제거, 타이머 범위 (0, 4h]
# - 절대 예외를 던지지 않음 (최선의 결과 반환)

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from app.models.schemas import Recipe
from app.services.utils import clean_instruction_description, coerce_timer, mentions_long_rest

log = logging.getLogger(__name__)

# (단계, 재료, 제목) 자리표시자
_PLACEHOLDERS = {
    "pt": ("Passo {n}: [Detalhes não extraídos - por favor edite este passo]",
           "Ingrediente {n} [por favor edite]",
           "Receita sem título"),
    "es": ("Paso {n}: [Detalles no extraídos - por favor edite este paso]",
           "Ingrediente {n} [por favor edite]",
           "Receta sin título"),
    "fr": ("Étape {n}: [Détails non extraits - veuillez modifier cette étape]",
           "Ingrédient {n} [veuillez modifier]",
           "Recette sans titre"),
    "en": ("Step {n}: [Details not extracted - please edit this step]",
           "Ingredient {n} [please edit]",
           "Untitled recipe"),
}

_TEXT_FIELDS = ("title", "description", "cuisine", "prepTime", "cookTime", "servings")


def _placeholders(language_code: Optional[str]):
    return _PLACEHOLDERS.get((language_code or "")[:2].lower(), _PLACEHOLDERS["en"])


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip()) or value == []


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _step_number(value: Any, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        return fallback
    return number if number > 0 else fallback


def validate_and_repair_recipe(raw: Any, language_code: Optional[str] = None) -> Dict[str, Any]:
    """빈 필수 필드를 자리표시자로 채운 dict 반환 (원본은 건드리지 않음)."""
    step_tpl, ingredient_tpl, title_tpl = _placeholders(language_code)
    recipe: Dict[str, Any] = dict(raw) if isinstance(raw, dict) else {}
    repaired = False

    steps: List[Dict[str, Any]] = []
    for idx, step in enumerate(_as_list(recipe.get("instructions")), start=1):
        step = dict(step) if isinstance(step, dict) else {"description": step}
        if _blank(step.get("description")):
            log.warning("recipe instruction step %d has empty description - repairing", idx)
            repaired = True
            step["description"] = step_tpl.format(n=idx)
            step["stepNumber"] = _step_number(step.get("stepNumber"), idx)
        steps.append(step)
    if not steps:
        repaired = True
        steps.append({"stepNumber": 1, "description": step_tpl.format(n=1)})
    recipe["instructions"] = steps

    ingredients: List[Dict[str, Any]] = []
    for idx, item in enumerate(_as_list(recipe.get("ingredients")), start=1):
        item = dict(item) if isinstance(item, dict) else {"name": item}
        if _blank(item.get("name")):
            log.warning("recipe ingredient %d has empty name - repairing", idx)
            repaired = True
            item["name"] = ingredient_tpl.format(n=idx)
            item["amount"] = item.get("amount") or ""
            item["unit"] = item.get("unit") or ""
        ingredients.append(item)
    if not ingredients:
        repaired = True
        ingredients.append({"name": ingredient_tpl.format(n=1), "amount": "", "unit": ""})
    recipe["ingredients"] = ingredients

    if _blank(recipe.get("title")):
        repaired = True
        recipe["title"] = title_tpl

    if repaired:
        log.warning("recipe was repaired due to empty fields")
    return recipe


def normalize_recipe(raw: Any, language_code: Optional[str] = None) -> Recipe:
    """수리 → 단계/재료 정규화 → Recipe 검증. 이미 정규화된 Recipe를 다시 넣어도 결과 동일."""
    if isinstance(raw, Recipe):
        raw = raw.model_dump()
    step_tpl = _placeholders(language_code)[0]
    recipe = validate_and_repair_recipe(raw, language_code)

    instructions = []
    for idx, step in enumerate(recipe["instructions"], start=1):
        description = clean_instruction_description(_text(step.get("description")))
        if not description:
            # 추임새만 있던 단계
            description = step_tpl.format(n=idx)
        instructions.append({
            "stepNumber": _step_number(step.get("stepNumber"), idx),
            "description": description,
            "timerSeconds": None if mentions_long_rest(description) else coerce_timer(step.get("timerSeconds")),
        })

    ingredients = []
    for item in recipe["ingredients"]:
        notes = item.get("notes")
        ingredients.append({
            "name": _text(item.get("name")).strip(),
            "amount": _text(item.get("amount")),
            "unit": _text(item.get("unit")),
            "notes": None if _blank(notes) else _text(notes),
        })

    nutrition = recipe.get("nutrition")
    payload: Dict[str, Any] = {
        field: _text(recipe.get(field)) for field in _TEXT_FIELDS
    }
    payload.update({
        "ingredients": ingredients,
        "instructions": instructions,
        "nutrition": nutrition if isinstance(nutrition, dict) else {},
        "tags": [_text(t) for t in _as_list(recipe.get("tags")) if not _blank(t)],
    })
    for field in ("sourceUrl", "languageCode", "transcript", "ocrText", "imageUrl"):
        if not _blank(recipe.get(field)):
            payload[field] = _text(recipe.get(field))

    try:
        return Recipe.model_validate(payload)
    except ValidationError:
        # nutrition 하위 필드 형식 이상 등: 영양 라벨은 나중에 다시 계산하므로 비움
        log.warning("recipe nutrition block invalid - dropping it", exc_info=True)
        payload["nutrition"] = {}
        return Recipe.model_validate(payload)
