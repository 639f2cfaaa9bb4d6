from types import SimpleNamespace

import httpx
import pytest
from openai import APIConnectionError

from app.core.errors import GenerationError, GenerationNotReady
from app.models.schemas import MediaItem
from app.services import vision_openai


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeTranscriptions:
    def __init__(self):
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(text="  Misture tudo. [inaudible] Leve ao forno.  ")


def install_fake(monkeypatch, completions=None, transcriptions=None):
    client = SimpleNamespace(
        chat=SimpleNamespace(completions=completions or FakeCompletions("{}")),
        audio=SimpleNamespace(transcriptions=transcriptions or FakeTranscriptions()),
    )
    monkeypatch.setattr(vision_openai, "_client", lambda: client)
    return client


class TestParseModelJson:
    def test_valid(self):
        assert vision_openai.parse_model_json('{"title": "Bolo"}') == {"title": "Bolo"}

    def test_truncated_json_is_repaired(self):
        obj = vision_openai.parse_model_json('{"title": "Bolo", "ingredients": [{"name": "ovo"')
        assert obj["title"] == "Bolo"
        assert obj["ingredients"][0]["name"] == "ovo"

    def test_repaired_output_logs_warning_only(self, caplog):
        with caplog.at_level("WARNING", logger=vision_openai.__name__):
            vision_openai.parse_model_json('{"title": "Bolo",')
        levels = [r.levelname for r in caplog.records]
        assert "WARNING" in levels
        assert "ERROR" not in levels

    def test_unrepairable_output_logs_error(self, caplog):
        with caplog.at_level("WARNING", logger=vision_openai.__name__):
            with pytest.raises(GenerationError):
                vision_openai.parse_model_json("not json at all")
        assert [r.levelname for r in caplog.records] == ["ERROR"]

    @pytest.mark.parametrize("text", ["not json at all", "[1, 2, 3]", "{}"])
    def test_unusable_output(self, text):
        with pytest.raises(GenerationError):
            vision_openai.parse_model_json(text)


class TestGenerateRecipe:
    @pytest.mark.asyncio
    async def test_images_inline_other_media_skipped(self, monkeypatch, openai_key):
        completions = FakeCompletions('{"title": "Bolo", "ingredients": [], "instructions": []}')
        install_fake(monkeypatch, completions)
        media = [
            MediaItem(data=b"png", mime_type="image/png", filename="a.png"),
            MediaItem(data=b"mp4", mime_type="video/mp4", filename="b.mp4"),
        ]
        result = await vision_openai.generate_recipe(media, "PROMPT")

        assert result["title"] == "Bolo"
        call = completions.calls[0]
        parts = call["messages"][1]["content"]
        assert [p["type"] for p in parts] == ["image_url", "text"]
        assert parts[0]["image_url"]["url"] == "data:image/png;base64,cG5n"
        assert parts[1]["text"] == "PROMPT"
        assert call["messages"][0]["role"] == "system"
        assert call["response_format"]["json_schema"]["schema"]["required"] == ["title", "ingredients", "instructions"]

    @pytest.mark.asyncio
    async def test_empty_response(self, monkeypatch):
        install_fake(monkeypatch, FakeCompletions(""))
        with pytest.raises(GenerationError):
            await vision_openai.generate_recipe([], "PROMPT")

    @pytest.mark.asyncio
    async def test_api_failure(self, monkeypatch):
        error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
        install_fake(monkeypatch, FakeCompletions(error=error))
        with pytest.raises(GenerationError):
            await vision_openai.generate_recipe([], "PROMPT")

    def test_missing_key(self, no_openai_key):
        with pytest.raises(GenerationNotReady):
            vision_openai._client()


class TestNutritionEstimate:
    @pytest.mark.asyncio
    async def test_estimate_parsed(self, monkeypatch):
        install_fake(monkeypatch, FakeCompletions(
            '{"portionCount": 24, "caloriesPerPortion": 85, "totalCalories": 2040, "extra": true}'
        ))
        estimate = await vision_openai.request_nutrition_estimates({"title": "Brigadeiro"}, "pt-BR", {})
        assert estimate.portionCount == 24
        assert estimate.caloriesPerPortion == 85

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "garbage", '{"portionCount": "many"}', '{"portionCount": 1e400, "caloriesPerPortion": 85}'])
    async def test_failures_become_none(self, monkeypatch, content):
        install_fake(monkeypatch, FakeCompletions(content))
        assert await vision_openai.request_nutrition_estimates({}, "en-US", {}) is None

    @pytest.mark.asyncio
    async def test_not_configured_becomes_none(self, no_openai_key):
        assert await vision_openai.request_nutrition_estimates({}, "en-US", {}) is None


class TestTranscribe:
    @pytest.mark.asyncio
    async def test_explicit_language(self, monkeypatch):
        transcriptions = FakeTranscriptions()
        install_fake(monkeypatch, transcriptions=transcriptions)
        item = MediaItem(data=b"audio", mime_type="audio/mpeg", filename="voz.mp3")
        text = await vision_openai.transcribe_media(item, "pt-PT")

        assert text == "Misture tudo. [inaudible] Leve ao forno."
        call = transcriptions.calls[0]
        assert call["language"] == "pt"
        assert call["file"] == ("voz.mp3", b"audio", "audio/mpeg")
        assert "Portuguese" in call["prompt"]

    @pytest.mark.asyncio
    async def test_auto_language(self, monkeypatch):
        transcriptions = FakeTranscriptions()
        install_fake(monkeypatch, transcriptions=transcriptions)
        item = MediaItem(data=b"v", mime_type="video/mp4", filename="clip.mp4")
        await vision_openai.transcribe_media(item, "auto")
        assert "language" not in transcriptions.calls[0]
        assert "detected source language" in transcriptions.calls[0]["prompt"]
