# app/models/units.py
# 단위 별칭 → 표준 단위키, 표준 단위키 → 환산 계수 (프로세스 시작 시 1회 구성, 읽기 전용)
# 주의: 별칭 테이블은 선언 순서가 곧 우선순위 (부분문자열 매칭이라 kg/mg가 g보다 먼저)

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Tuple

WEIGHT = "weight"   # 기준: g
VOLUME = "volume"   # 기준: ml


@dataclass(frozen=True)
class UnitDefinition:
    key: str
    kind: str       # WEIGHT | VOLUME
    factor: float   # 기준 단위로의 환산 계수


# === 별칭 =====================================================================
UNIT_ALIASES: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "kg": ("kg", "kilogram", "kilograms", "quilo", "quilos", "kilo", "kilos"),
    "mg": ("mg", "milligram", "milligrams", "miligrama", "miligramas"),
    "g": ("g", "gram", "grams", "grama", "gramas", "gramos", "gramme", "grammes"),
    "lb": ("lb", "lbs", "pound", "pounds", "libra", "libras"),
    "oz": ("oz", "ounce", "ounces", "onza", "onzas"),
    "ml": ("ml", "mililitro", "mililitros", "milliliter", "milliliters", "millilitre", "millilitres"),
    "l": ("l", "litro", "litros", "liter", "liters", "litre", "litres"),
    "cup": ("cup", "cups", "xícara", "xicaras", "xícaras", "xicara", "caneca", "taza", "tazas", "tasse", "tasses"),
    "tbsp": (
        "tbsp", "tablespoon", "tablespoons", "colher de sopa", "colheres de sopa", "cda",
        "cucharada", "cucharadas", "cuillère à soupe", "cuillères à soupe",
    ),
    "tsp": (
        "tsp", "teaspoon", "teaspoons", "colher de chá", "colheres de chá", "colher de cha",
        "colheres de cha", "cdt", "cdita", "cucharadita", "cucharaditas",
        "cuillère à café", "cuillères à café",
    ),
    "pinch": ("pinch", "pitada", "pitadas", "pizca", "pizcas", "pincée", "pincées"),
    "unit": ("unit", "units", "unidade", "unidades", "unidad", "whole", "inteiro"),
    "can": ("lata", "latinha", "can", "cans", "latas"),
})

# === 환산 계수 ================================================================
UNIT_FACTORS: Mapping[str, UnitDefinition] = MappingProxyType({
    d.key: d
    for d in (
        UnitDefinition("g", WEIGHT, 1),
        UnitDefinition("kg", WEIGHT, 1000),
        UnitDefinition("mg", WEIGHT, 0.001),
        UnitDefinition("lb", WEIGHT, 453.592),
        UnitDefinition("oz", WEIGHT, 28.3495),
        UnitDefinition("cup", VOLUME, 240),
        UnitDefinition("tbsp", VOLUME, 15),
        UnitDefinition("tsp", VOLUME, 5),
        UnitDefinition("ml", VOLUME, 1),
        UnitDefinition("l", VOLUME, 1000),
        UnitDefinition("pinch", WEIGHT, 0.36),
    )
})

# 유니코드 분수 글리프
FRACTION_CHARS: Mapping[str, float] = MappingProxyType({
    "½": 0.5,
    "¼": 0.25,
    "¾": 0.75,
    "⅓": 1 / 3,
    "⅔": 2 / 3,
    "⅛": 0.125,
    "⅜": 0.375,
    "⅝": 0.625,
    "⅞": 0.875,
})
