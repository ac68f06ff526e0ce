import re

from cv_impact.guard import (
    VERBIFY,
    build_fallback,
    clean_output,
    dedupe_bullets,
    leaked_numerals,
    parse,
    render,
    validate,
    validate_and_repair,
    verbify,
)
from cv_impact.prompts import CTA_LINE
from cv_impact.structure import DateRange, RoleBlock

TITLE = "Specjalista ds. Sprzedaży B2B"
ROLE = RoleBlock(
    title=TITLE,
    company="ABC",
    date_range=DateRange(start="03.2021", end="obecnie"),
    body_lines=("Pozyskiwanie 40 klientów tygodniowo", "Prowadzenie negocjacji"),
    raw_text=f"{TITLE} - ABC | 03.2021 – obecnie\nPozyskiwanie 40 klientów tygodniowo\nProwadzenie negocjacji",
)
ALLOWED = TITLE + "\n" + ROLE.raw_text

GOOD = f"""```
Oto poprawiona wersja:
=== BEFORE ({TITLE}) ===
coś innego niż źródło
=== AFTER ({TITLE}) ===
Wersja A (bezpieczna):
• Pozyskiwałem 40 klientów tygodniowo
• Prowadziłem negocjacje handlowe
• Budowałem relacje z klientami B2B
Wersja B (mocniejsza):
1. Co tydzień pozyskiwałem 40 nowych klientów
2. Samodzielnie negocjowałem warunki umów
3. Rozwijałem relacje z klientami B2B
Chcesz poprawić kolejną rolę?
Chcesz poprawić kolejną rolę?
```"""

LEAKY = GOOD.replace("Co tydzień pozyskiwałem 40 nowych klientów", "Zwiększyłem sprzedaż o 35%")


def test_clean_output_unifies_markers_and_drops_artifacts():
    text = "```\n• a\n* b\n– c\n2) d\n- Realizacja: e\nRESULT: x\n```"
    assert clean_output(text) == "- a\n- b\n- c\n- d\n- e"


def test_clean_output_keeps_dates_that_look_like_numbered_items():
    assert clean_output("03.2021 – obecnie") == "03.2021 – obecnie"


def test_repaired_generator_output_is_accepted():
    result = validate_and_repair(GOOD, ROLE, ALLOWED)
    assert result.source == "generator"
    assert result.attempts == 1
    assert result.text.count(CTA_LINE) == 1
    assert result.text.endswith(CTA_LINE)
    # BEFORE is always the role's own text
    assert "coś innego niż źródło" not in result.text
    assert "Pozyskiwanie 40 klientów tygodniowo" in result.text
    assert "```" not in result.text


def test_new_number_falls_back_to_template():
    problems = validate(LEAKY.replace("```", ""), TITLE, ALLOWED)
    assert any("35" in p for p in problems)

    result = validate_and_repair(LEAKY, ROLE, ALLOWED)
    assert result.source == "fallback"
    assert "35" not in result.text
    assert validate(result.text, TITLE, ALLOWED) == []


def test_repair_loop_is_bounded():
    calls = []

    def regenerate(problems, previous):
        calls.append(problems)
        return LEAKY

    result = validate_and_repair(LEAKY, ROLE, ALLOWED, regenerate=regenerate)
    assert len(calls) == 2
    assert result.source == "fallback"
    assert result.attempts == 3


def test_repair_loop_accepts_a_fixed_answer():
    calls = []

    def regenerate(problems, previous):
        calls.append((problems, previous))
        return GOOD

    result = validate_and_repair(LEAKY, ROLE, ALLOWED, regenerate=regenerate)
    assert result.source == "generator"
    assert result.attempts == 2
    problems, previous = calls[0]
    assert any("35" in p for p in problems)
    assert previous == LEAKY


def test_unreachable_generator_during_repair_uses_fallback():
    result = validate_and_repair(LEAKY, ROLE, ALLOWED, regenerate=lambda problems, previous: None)
    assert result.source == "fallback"
    assert result.attempts == 1


def test_validate_reports_structural_problems():
    problems = validate("Jakiś tekst bez struktury", TITLE, ALLOWED)
    assert "brak nagłówka BEFORE z tytułem roli" in problems
    assert "brak sekcji Wersja A" in problems
    assert "brak końcowej linii z pytaniem o kolejną rolę" in problems


def test_validate_rejects_identical_variants_and_causal_phrases():
    bullets = ["Pozyskiwałem klientów", "Prowadziłem negocjacje", "Budowałem relacje"]
    text = render(ROLE, bullets, bullets)
    assert "Wersja A i Wersja B są identyczne" in validate(text, TITLE, ALLOWED)

    text = render(ROLE, bullets, ["Prowadziłem negocjacje, dzięki czemu rosła sprzedaż"] + bullets[:2])
    assert "niedozwolona fraza: dzięki czemu" in validate(text, TITLE, ALLOWED)


def test_render_without_variants_keeps_before_and_cta():
    text = render(ROLE, None, None, after=False)
    assert text.startswith(f"=== BEFORE ({TITLE}) ===")
    assert "=== AFTER" not in text
    assert "Wersja" not in text
    assert text.endswith(CTA_LINE)


def test_parse_collects_bullets_per_variant():
    parsed = parse(clean_output(GOOD))
    assert parsed.has_before and parsed.has_after
    assert parsed.variant_a[0] == "Pozyskiwałem 40 klientów tygodniowo"
    assert len(parsed.variant_b) == 3


def test_numeral_formats():
    assert leaked_numerals("ROAS 4,2", "ROAS 4.2") == []
    assert leaked_numerals("60 000 zł", "budżet 60000 zł") == []
    assert leaked_numerals("1.5 mln", "15 klientów") == ["1.5"]


def test_fallback_uses_only_role_text_and_answers():
    answers = [("RESULT", "Plan zrealizowany na 120%")]
    text = build_fallback(ROLE, answers)
    assert "Efekt: Plan zrealizowany na 120%" in text
    parsed = parse(text)
    assert 3 <= len(parsed.variant_a) <= 8
    assert parsed.variant_b[-1] == "Pozyskiwałem 40 klientów tygodniowo"
    assert validate(text, TITLE, ALLOWED + "\n120%") == []


def test_verbify_and_dedupe():
    assert verbify("Prowadzenie negocjacji") == "Prowadziłem negocjacji"
    assert verbify("Skala: 40 klientów") == "Skala: 40 klientów"
    assert dedupe_bullets(["Raporty.", "raporty", "Spotkania"]) == ["Raporty.", "Spotkania"]


def test_fallback_bullets_come_from_role_text_and_answers():
    role = RoleBlock(
        title="Konsultant",
        company="Baltona",
        location="Warszawa",
        date_range=DateRange(start="04.2022", end="10.2024"),
        body_lines=("Obsługa klientów w salonie",),
        raw_text="Konsultant - Baltona, Warszawa | 04.2022 – 10.2024\nObsługa klientów w salonie",
    )
    answers = [("SCALE", "około 30 klientów dziennie")]
    source = (role.raw_text + "\n" + answers[0][1]).lower()
    verbs = {verb.split()[0].lower() for _, verb in VERBIFY}

    text = build_fallback(role, answers)
    parsed = parse(text)
    assert len(parsed.variant_a) >= 3 and len(parsed.variant_b) >= 3
    for bullet in parsed.variant_a + parsed.variant_b:
        body = re.sub(r"^(?:Stanowisko|Firma|Lokalizacja|Okres|Skala|Proces|Efekt|Punkt odniesienia):\s*", "", bullet)
        words = re.findall(r"[^\W_]+", body.lower())
        if words and words[0] in verbs:
            words = words[1:]
        assert all(w in source for w in words), bullet
    assert validate(text, "Konsultant", role.raw_text + "\n" + answers[0][1]) == []
