from cv_impact.structure import (
    HeaderSignals,
    classify_header,
    find_role,
    header_signals,
    parse_header,
    role_key,
    segment,
)


THREE_ROLES = """Junior Developer - Qodek | 09.2021 – 11.2023
- Implementacja zmian w aplikacji webowej
- Naprawa błędów

Kierownik Projektu - Papaka | 02.2020 – 08.2021
- Koordynacja prac zespołu i dostawców

Analityk Danych - DataCo | 01.2018 – 01.2020
- Raportowanie sprzedaży dla zarządu
"""


def test_one_line_header_with_company_and_city():
    text = "Specjalista ds. Sprzedaży B2B - ABC Sp. z o.o., Warszawa | 03.2021 – obecnie\nPozyskiwanie klientów..."
    roles = segment(text)
    assert len(roles) == 1
    role = roles[0]
    assert role.title == "Specjalista ds. Sprzedaży B2B"
    assert role.date_range.label == "03.2021 – obecnie"
    assert role.date_range.is_open
    assert role.company.startswith("ABC")
    assert role.body_lines == ("Pozyskiwanie klientów...",)


def test_one_line_headers_give_one_block_each_in_order():
    roles = segment(THREE_ROLES)
    assert [r.title for r in roles] == ["Junior Developer", "Kierownik Projektu", "Analityk Danych"]
    assert [r.company for r in roles] == ["Qodek", "Papaka", "DataCo"]
    assert roles[0].body_lines == ("- Implementacja zmian w aplikacji webowej", "- Naprawa błędów")
    # raw text keeps the header for verbatim quoting
    assert roles[1].raw_text.startswith("Kierownik Projektu - Papaka | 02.2020 – 08.2021")


def test_duplicate_roles_collapse_keeping_first():
    text = (
        "Junior Developer - Qodek | 09.2021 – 11.2023\n- Pierwszy opis\n\n"
        "Junior Developer - Qodek | 09.2021 – 11.2023\n- Drugi opis\n"
    )
    roles = segment(text)
    assert len(roles) == 1
    assert roles[0].body_lines == ("- Pierwszy opis",)


def test_title_line_followed_by_company_date_line():
    text = "Marketing Specialist\nPapaka, Warszawa | 06.2022 – 12.2024\n- Prowadzenie kampanii"
    roles = segment(text)
    assert len(roles) == 1
    role = roles[0]
    assert role.title == "Marketing Specialist"
    assert role.company == "Papaka"
    assert role.location == "Warszawa"
    assert role.date_range.label == "06.2022 – 12.2024"
    assert role.body_lines == ("- Prowadzenie kampanii",)


def test_start_year_with_open_marker_on_next_line():
    text = "Kierownik Sklepu - Żabka | 2019\nobecnie\n- Zarządzanie zespołem"
    roles = segment(text)
    assert len(roles) == 1
    assert roles[0].title == "Kierownik Sklepu"
    assert roles[0].date_range.label == "2019 – obecnie"


def test_empty_or_unstructured_text_has_no_roles():
    assert segment("") == []
    assert segment("Lubię góry i dobrą kawę.") == []


def test_reject_rules():
    assert classify_header(header_signals(["- Prowadzenie kampanii | 2020 – 2021"], 0)) is None
    assert classify_header(header_signals(["obsługa klienta - Firma | 2020 – 2021"], 0)) is None
    assert classify_header(header_signals(["Prowadzenie zespołu - ABC Sp. z o.o."], 0)) is None
    assert classify_header(header_signals(["Papaka, Warszawa | 06.2022 – 12.2024"], 0)) is None


def test_accept_rules_are_named():
    assert classify_header(header_signals(["Junior Developer - Qodek | 09.2021 – 11.2023"], 0)) == "inline_dates"
    assert classify_header(header_signals(["ACME SP. Z O.O. - Kierownik"], 0)) == "dash_suffix"
    assert classify_header(header_signals(["Senior Analyst - Fintech"], 0)) == "dash_job"
    lines = ["Marketing Specialist", "Papaka, Warszawa | 06.2022 – 12.2024"]
    assert classify_header(header_signals(lines, 0)) == "next_line_dates"


def test_inline_dates_need_more_than_a_dash():
    signals = HeaderSignals(length=40, dash=True, inline_dates=True)
    assert classify_header(signals) is None
    assert classify_header(signals.model_copy(update={"legal_suffix": True})) == "inline_dates"
    assert classify_header(signals.model_copy(update={"job_keyword": True, "title_case": True})) == "inline_dates"


def test_parse_header_swaps_company_first_lines():
    parts = parse_header("ABC Sp. z o.o. - Specjalista ds. Sprzedaży | 01.2020 – 02.2021")
    assert parts.title == "Specjalista ds. Sprzedaży"
    assert parts.company == "ABC Sp. z o.o."


def test_parse_header_pipe_parts():
    parts = parse_header("Qodek | Junior Developer | 09.2021 – 11.2023")
    assert parts.title == "Junior Developer"
    assert parts.company == "Qodek"


def test_role_key_ignores_case_and_diacritics():
    assert role_key("Specjalista ds. Sprzedaży") == role_key("SPECJALISTA DS SPRZEDAZY")


def test_find_role_exact_partial_and_literal():
    roles = segment(THREE_ROLES)
    assert find_role(roles, "kierownik projektu").title == "Kierownik Projektu"
    assert find_role(roles, "Analityk").title == "Analityk Danych"
    missing = find_role(roles, "  Tester  Manualny ")
    assert missing.title == "Tester Manualny"
    assert missing.body_lines == ()
