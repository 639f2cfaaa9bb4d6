import pytest

from app.services.utils import clean_instruction_description, coerce_timer, mentions_long_rest, strip_diacritics


class TestCleanInstruction:
    def test_fillers_and_spacing(self):
        text = "Misture   tudo kkkk , depois asse hahaha."
        assert clean_instruction_description(text) == "Misture tudo, depois asse."

    def test_words_containing_filler_letters_survive(self):
        assert clean_instruction_description("Add the jalapeño and shallots.") == "Add the jalapeño and shallots."

    def test_empty(self):
        assert clean_instruction_description(None) == ""
        assert clean_instruction_description("   ") == ""


class TestLongRest:
    @pytest.mark.parametrize("text", [
        "Rest overnight in the fridge.",
        "Deixe na geladeira durante a noite.",
        "Refrigere por 2-6 horas.",
        "Bake for 20 minutes, then chill 8h.",
        "Laissez reposer 5 heures.",
        "Marinate 1 to 5 hours.",
    ])
    def test_detected(self, text):
        assert mentions_long_rest(text)

    @pytest.mark.parametrize("text", [
        "Cozinhe por 1 hora.",
        "Bake 2-3 hours.",
        "Boil for 45 minutes.",
        "",
        None,
    ])
    def test_not_detected(self, text):
        assert not mentions_long_rest(text)


class TestCoerceTimer:
    def test_range(self):
        assert coerce_timer(1) == 1
        assert coerce_timer(14400) == 14400
        assert coerce_timer(14400.4) is None
        assert coerce_timer(0.4) is None
        assert coerce_timer(float("nan")) is None
        assert coerce_timer(None) is None


def test_strip_diacritics():
    assert strip_diacritics("xícara pincée cuillère") == "xicara pincee cuillere"
