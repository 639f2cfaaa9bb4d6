# app/models/schemas.py
# Pydantic 모델 정의: 프론트와 같은 camelCase 필드명
# Recipe: 수리/정규화를 거친 "신뢰 가능한" 레시피 (생성 모델 원본 JSON은 dict 그대로 다루고 여기로 검증)
# NutritionEstimate: 외부 영양 추정 (전부 optional, 신뢰하지 않음)

from __future__ import annotations
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(v):
    # 숫자/None 등 → 문자열
    if v is None:
        return ""
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


class Ingredient(BaseModel):
    name: str
    amount: str = ""      # 빈 문자열 = 적당량
    unit: str = ""
    notes: Optional[str] = None

    @field_validator("name", "amount", "unit", mode="before")
    @classmethod
    def _v_text(cls, v):
        return _as_text(v)


class InstructionStep(BaseModel):
    stepNumber: int
    description: str
    timerSeconds: Optional[int] = None


class Nutrition(BaseModel):
    # calories/totalCalories 는 서버에서 계산한 표시용 라벨
    calories: Optional[str] = None
    totalCalories: Optional[str] = None
    protein: Optional[str] = None
    carbs: Optional[str] = None
    fats: Optional[str] = None

    @field_validator("calories", "totalCalories", "protein", "carbs", "fats", mode="before")
    @classmethod
    def _v_label(cls, v):
        return None if v is None else _as_text(v)


class Recipe(BaseModel):
    title: str = ""
    description: str = ""
    cuisine: str = ""
    prepTime: str = ""
    cookTime: str = ""
    servings: str = ""
    ingredients: List[Ingredient] = Field(default_factory=list)
    instructions: List[InstructionStep] = Field(default_factory=list)
    nutrition: Nutrition = Field(default_factory=Nutrition)
    tags: List[str] = Field(default_factory=list)
    sourceUrl: Optional[str] = None
    languageCode: Optional[str] = None
    transcript: Optional[str] = None
    ocrText: Optional[str] = None
    imageUrl: Optional[str] = None   # 커버: URL 또는 data URL


class NutritionEstimate(BaseModel):
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    portionCount: Optional[float] = None
    portionDescription: Optional[str] = None
    totalCalories: Optional[float] = None
    caloriesPerPortion: Optional[float] = None
    reasoning: Optional[str] = None


class MediaItem(BaseModel):
    # 업로드 파일/원격 미디어 공통 표현 (요청 단위, 메모리 내)
    data: bytes
    mime_type: str
    filename: str = "media"

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    @property
    def is_audio(self) -> bool:
        return self.mime_type.startswith("audio/")

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class IngestRequest(BaseModel):
    files: List[MediaItem] = Field(default_factory=list)
    textInput: str = ""
    userInstructions: str = ""
    languageHint: str = "auto"
    sourceUrl: str = ""
    remoteUrl: str = ""


class RemoteContent(BaseModel):
    # 원격 URL 수집 결과: 미디어 또는 (웹페이지 텍스트 + 대표 이미지)
    media: List[MediaItem] = Field(default_factory=list)
    text: Optional[str] = None
    image: Optional[str] = None


class RecipeMetadata(BaseModel):
    transcript: str = ""
    ocrText: str = ""
    languageCode: str = "auto"
    coverImage: Optional[str] = None


class RecipeResponse(BaseModel):
    recipe: Recipe
    metadata: RecipeMetadata
