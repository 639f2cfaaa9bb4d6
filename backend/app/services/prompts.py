# app/services/prompts.py
# 생성/영양 추정/전사 프롬프트 (모델에 보내는 영어 지시문)

from __future__ import annotations
import json
from typing import Any, Dict, Optional

from app.services.language import AUTO, language_label

RECIPE_SYSTEM = (
    "Always respond with valid JSON that matches the provided schema. "
    "Maintain the requested output language."
)
NUTRITION_SYSTEM = (
    "You are a culinary nutrition analyst. Respond with strict JSON that matches the provided schema."
)


def _block(label: str, value: Optional[str]) -> str:
    return f"\n{label}:\n{value}" if value else ""


def transcription_prompt(language_code: str = AUTO) -> str:
    if language_code and language_code != AUTO:
        directive = f"in {language_label(language_code)} ({language_code})"
    else:
        directive = "in the detected source language"
    return (
        "Culinary recipe narration. Full sentences, natural casing and proper punctuation "
        f"{directive}. Unclear passages are marked as [inaudible]."
    )


def build_prompt(
    language_code: str,
    transcript_text: str = "",
    ocr_text: str = "",
    text_input: str = "",
    user_instructions: str = "",
    source_url: str = "",
) -> str:
    target = "the detected source language" if language_code == AUTO else language_label(language_code)
    return (
        "You are a world-class culinary R&D chef. Analyze every media sample, combine information "
        "from transcript, OCR, and raw text, and craft a structured recipe.\n"
        "\n"
        "CRITICAL REQUIREMENTS:\n"
        f"- Output must be written entirely in {target}.\n"
        '- Every instruction step MUST have a non-empty "description" field with the FULL cooking '
        "instruction text. Never leave description empty or null.\n"
        '- Every ingredient MUST have "name", "amount", and "unit" filled in. Use "to taste" or '
        '"as needed" if quantity is unclear.\n'
        "- If inputs mix languages, prefer the one most used in instructions.\n"
        "- Rewrite any comedic or chaotic narration into clear, professional cookbook instructions.\n"
        '- CRITICAL for servings: Search the source for EXPLICIT mentions like "serves 4", "makes 12", '
        '"rende 6 porções", "faz 24 brigadeiros". Use that exact number.\n'
        "- Provide realistic durations. Never set timerSeconds longer than 4 hours.\n"
        "- Include culturally accurate measurements and plated presentation tips.\n"
        + _block("Transcript Notes", transcript_text)
        + _block("OCR Notes", ocr_text)
        + _block("Raw Text Notes", text_input)
        + _block("User Instructions", user_instructions)
        + _block("Source URL", source_url)
        + "\nReturn valid JSON only."
    )


def build_nutrition_prompt(recipe: Dict[str, Any], language_code: str, context: Dict[str, str]) -> str:
    return (
        "Given the recipe JSON and source context below:\n"
        "\n"
        "PORTION DETECTION (PRIORITY):\n"
        "- Search the Transcript/OCR/Text for EXPLICIT serving mentions: \"serves X\", \"makes X\", "
        "\"yields X\", \"rende X\", \"faz X\", \"for X people\", etc.\n"
        "- If found, use that EXACT number as portion count.\n"
        "- Only estimate from ingredient quantities if no explicit mention exists.\n"
        "\n"
        "NUTRITION:\n"
        "- Estimate total kilocalories by summing ingredient contributions.\n"
        "- Calculate calories per portion (total / portion count).\n"
        f"- Describe portion in {language_code or AUTO} language (e.g., \"~24 brigadeiros\", \"serves 4\").\n"
        "\n"
        "Return strict JSON matching the schema. Keep reasoning concise.\n"
        "\n"
        "Recipe JSON:\n"
        + json.dumps(recipe, ensure_ascii=False, indent=2)
        + _block("Transcript Notes", context.get("transcript_text"))
        + _block("OCR Notes", context.get("ocr_text"))
        + _block("User Text Input", context.get("text_input"))
        + _block("User Instructions", context.get("user_instructions"))
        + _block("Source URL", context.get("source_url"))
        + "\n"
    )
