import pytest

from app.services.language import AUTO, detect_language, language_label


class TestDetectLanguage:
    def test_explicit_hint_wins(self):
        assert detect_language("This is clearly an English sentence about cake.", "es-ES") == "es-ES"
        assert detect_language("", "ja-JP") == "ja-JP"

    @pytest.mark.parametrize("text", ["", None, "bolo de milho"])
    def test_short_text_is_auto(self, text):
        assert detect_language(text) == AUTO

    def test_portuguese(self):
        text = (
            "Coloque o leite condensado, a manteiga e o chocolate em pó numa panela "
            "e mexa sempre até desgrudar do fundo. Depois deixe esfriar e enrole as bolinhas."
        )
        assert detect_language(text, AUTO) == "pt-PT"

    def test_english(self):
        text = "Preheat the oven, whisk the eggs with the sugar and fold in the flour gently until smooth."
        assert detect_language(text) == "en-US"


def test_language_label():
    assert language_label("pt-PT") == "Portuguese"
    assert language_label("kor") == "Korean"
    assert language_label("pt-BR") == "Portuguese"
    assert language_label(AUTO) == "source language"
    assert language_label(None) == "source language"
