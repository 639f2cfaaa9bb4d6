# 공용 픽스처: 요청 한도 초기화, 레시피 원본(dict) 샘플

import pytest

from app.core.config import settings
from app.core.deps import limiter


@pytest.fixture(autouse=True)
def reset_rate_limit():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def openai_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    return "sk-test"


@pytest.fixture
def no_openai_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)


@pytest.fixture
def raw_recipe():
    """Generation output as it arrives: partially filled, loosely typed."""
    return {
        "title": "Brigadeiro",
        "description": "Doce clássico de festa",
        "servings": "",
        "ingredients": [
            {"name": "leite condensado", "amount": "1", "unit": "lata"},
            {"name": "manteiga", "amount": "20", "unit": "g"},
            {"name": "", "amount": "2", "unit": "colheres de sopa"},
        ],
        "instructions": [
            {"stepNumber": 1, "description": "Misture tudo na panela kkkk .", "timerSeconds": 600},
            {"stepNumber": 2, "description": "   ", "timerSeconds": 300},
            {"stepNumber": 3, "description": "Deixe esfriar durante a noite.", "timerSeconds": 3600},
        ],
        "tags": ["doce", "festa"],
    }
