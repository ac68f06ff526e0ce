import pytest

from cv_impact.agent import (
    GenerationError,
    allowed_facts,
    build_repair_messages,
    build_rewrite_messages,
    facts_text,
    rewrite_role,
)
from cv_impact.prompts import CTA_LINE
from cv_impact.structure import segment

ROLE = segment(
    "Kierownik Zmiany - Logistyka Sp. z o.o. | 01.2019 – 12.2022\n"
    "- Zarządzałem zespołem 12 osób na zmianie\n"
    "- Skróciłem czas kompletacji zamówień z 40 do 25 minut r/r"
)[0]

REWRITE = """=== BEFORE (Kierownik Zmiany) ===
x
=== AFTER (Kierownik Zmiany) ===
Wersja A (bezpieczna):
- Zarządzałem zespołem 12 osób na zmianie
- Skróciłem czas kompletacji zamówień z 40 do 25 minut r/r
- Organizowałem pracę zmiany magazynowej
Wersja B (mocniejsza):
- Skróciłem czas kompletacji z 40 do 25 minut r/r
- Kierowałem 12-osobowym zespołem zmianowym
- Ustalałem priorytety pracy zmiany
Chcesz poprawić kolejną rolę?"""


def test_role_fixture_parsed():
    assert ROLE.title == "Kierownik Zmiany"
    assert ROLE.company == "Logistyka Sp. z o.o."


def test_rewrite_messages_carry_role_and_answers():
    messages = build_rewrite_messages(ROLE, [("SCALE", "3 magazyny"), (None, "dodatkowo szkolenia")])
    system, human = messages
    assert "Nie wymyślaj liczb" in system.content
    assert "Rola: Kierownik Zmiany" in human.content
    assert "Zarządzałem zespołem 12 osób" in human.content
    assert "Skala: 3 magazyny" in human.content
    assert "Dodatkowo: dodatkowo szkolenia" in human.content


def test_facts_text_when_nothing_collected():
    assert facts_text([]) == "(brak)"


def test_allowed_facts_include_answers():
    text = allowed_facts(ROLE, [("RESULT", "oszczędność 15 h tygodniowo")])
    assert "15 h" in text
    assert ROLE.title in text


def test_repair_messages_extend_the_conversation():
    base = build_rewrite_messages(ROLE)
    messages = build_repair_messages(base, ROLE, ["brak sekcji Wersja B"], "stara odpowiedź")
    assert len(messages) == len(base) + 1
    assert "- brak sekcji Wersja B" in messages[-1].content
    assert "stara odpowiedź" in messages[-1].content


def test_rewrite_role_with_valid_output():
    seen = []

    def generate(messages):
        seen.append(messages)
        return REWRITE

    result = rewrite_role(ROLE, generate=generate)
    assert len(seen) == 1
    assert result.source == "generator"
    assert result.text.startswith("=== BEFORE (Kierownik Zmiany) ===\nKierownik Zmiany - Logistyka")
    assert result.text.endswith(CTA_LINE)


def test_rewrite_role_first_call_failure_propagates():
    def generate(messages):
        raise GenerationError("timeout")

    with pytest.raises(GenerationError):
        rewrite_role(ROLE, generate=generate)


def test_failed_repair_call_uses_fallback():
    calls = []

    def generate(messages):
        calls.append(messages)
        if len(calls) == 1:
            return REWRITE.replace("12-osobowym", "15-osobowym")
        raise GenerationError("connection reset")

    result = rewrite_role(ROLE, generate=generate)
    assert len(calls) == 2
    assert result.source == "fallback"
    assert "15" not in result.text
    assert result.text.endswith(CTA_LINE)
