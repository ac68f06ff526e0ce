SYSTEM_PROMPT = """Jesteś "CV Impact Architect", merytorycznym agentem, który poprawia WYŁĄCZNIE
sekcję Doświadczenie w polskim CV. Zamieniasz ogólne obowiązki na mierzalne
osiągnięcia (action + scale + result).

Twarde zasady:
- Nie wymyślaj liczb, KPI, nazw klientów ani efektów. Używasz tylko faktów z
  opisu roli i z odpowiedzi użytkownika.
- Jeśli brakuje danych, piszesz mocny opis jakościowy zamiast zgadywać.
- Zero placeholderów typu [do uzupełnienia], zero komentarzy w tekście wynikowym.
- Anonimizuj dane osób trzecich i nazwy klientów pracodawcy; nazwy pracodawców zostają.
- Tylko po polsku. Krótko i czytelnie. Bez JSON, bez markdown, bez bloków kodu.
"""

CTA_LINE = "Chcesz poprawić kolejną rolę?"
BEFORE_MARKER = "=== BEFORE ({title}) ==="
AFTER_MARKER = "=== AFTER ({title}) ==="
VARIANT_A_LABEL = "Wersja A (bezpieczna):"
VARIANT_B_LABEL = "Wersja B (mocniejsza):"
MAX_BEFORE_LINES = 12
MIN_BULLETS = 3
MAX_BULLETS = 8

# Rendered by ChatPromptTemplate; literal braces must stay doubled.
REWRITE_PROMPT = """Zadanie: Przerób opis doświadczenia na CV w formie IMPACT. Nie wymyślaj faktów.
Rola: {role_title}

BEFORE (źródło, wklej 1:1 w sekcji BEFORE):
{before}

DODATKOWE FAKTY OD USERA (jeśli są):
{facts}

Wymagany format WYJŚCIA (bez markdown, bez bloków kodu):
=== BEFORE ({role_title}) ===
(wklej 1:1 treść BEFORE, max 12 linii)
=== AFTER ({role_title}) ===
Wersja A (bezpieczna):
- 3–6 bulletów (myślniki, jeden poziom)
Wersja B (mocniejsza):
- 3–6 bulletów (myślniki, jeden poziom)

Zasady:
- NIE dodawaj nowych liczb ani metryk (tylko te z BEFORE lub z faktów usera).
- Bullety zaczynają się od czasownika i są konkretne.
- Wersja B jest mocniejsza stylistycznie, ale bez nowych faktów i bez "Realizacja:".
- Nie łącz faktów przyczynowo ("dzięki czemu", "co przełożyło się na"), jeśli user tego nie powiedział.
- Nie wstawiaj etykiet typu "BASELINE/KONTEKST" i nie dopisuj komentarzy.
Zakończ dokładnie linią: "Chcesz poprawić kolejną rolę?"
"""

REPAIR_PROMPT = """Twoja poprzednia odpowiedź nie spełnia formatu. Problemy:
{problems}

Popraw ją. Zachowaj dokładnie format:
=== BEFORE ({role_title}) ===
=== AFTER ({role_title}) ===
Wersja A (bezpieczna): 3–6 bulletów zaczynających się od "- "
Wersja B (mocniejsza): 3–6 innych bulletów zaczynających się od "- "
Używaj wyłącznie liczb, które występują w źródle lub w faktach usera.
Zakończ dokładnie linią: "Chcesz poprawić kolejną rolę?"

Poprzednia odpowiedź:
{previous}
"""

ONBOARDING_MESSAGE = (
    "Gotowy na dopracowanie CV? Wklej sekcję „Doświadczenie” (stanowiska + opisy), "
    "a ja zrobię szybki audyt i dopytam o konkrety.\n\n"
    "Najlepiej w formacie:\n"
    "STANOWISKO - Firma | MM.RRRR – MM.RRRR\n"
    "- obowiązek/osiągnięcie 1\n"
    "- obowiązek/osiągnięcie 2\n\n"
    "Uwaga: pracujemy tylko na Doświadczeniu i nie obsługujemy OCR dla skanów."
)

AUDIT_INTRO = (
    "Zmienimy „obowiązki” na IMPACT.\n"
    "W CV liczy się:\n"
    "- co zrobiłeś/aś (action)\n"
    "- jaka była skala (scale)\n"
    "- jaki był efekt (result)\n\n"
    "Już wiem, co poprawić. Wybierz rolę do dopracowania:"
)
AUDIT_PROMPT = "Wpisz numer: 1–{count}"
AUDIT_NOTHING_MISSING = "(brak oczywistych)"

START_INTRO = "Ok, w takim razie zacznijmy od „{title}”."
NEXT_ROLE_INTRO = "Świetnie, bierzemy na warsztat kolejną rolę: {title}."
READY_MESSAGE = "Mam już wszystko do rewrite. Lecimy."
DECLINE_ACK = "Ok, pomijamy ten punkt."
ALL_DONE_MESSAGE = "Ok. Przerobiliśmy już wszystkie role, które wkleiłeś. Wklej kolejne stanowisko, a lecimy dalej."
GENERATION_ERROR_MESSAGE = (
    "Nie udało się teraz wygenerować przepisanej wersji (problem z połączeniem z modelem). "
    "Spróbuj ponownie za chwilę."
)

MISSING_LABELS = {
    "ACTIONS": "konkrety działań",
    "SCALE": "skala (liczby/wielkość)",
    "PROCESS": "proces pozyskania",
    "RESULT": "wynik (twardy efekt)",
    "CONTEXT": "punkt odniesienia wyniku",
}

_ACTIONS_Q = (
    "Co konkretnie Ty zrobiłeś w tej roli? Podaj 2–4 działania (czasowniki + obiekt), "
    "za które brałeś pełną odpowiedzialność (Ty, nie zespół)."
)
_CONTEXT_Q = (
    "Do czego odnosisz ten wynik? Podaj punkt odniesienia: poprzedni okres (r/r, m/m), "
    "stan sprzed Twojej zmiany albo średnią zespołu."
)

# Keyed by fact kind, then by Domain value; "generic" is the fallback.
QUESTION_BANK = {
    "ACTIONS": {"generic": _ACTIONS_Q},
    "SCALE": {
        "generic": "Jaka była skala Twojej pracy? Np. liczba klientów/projektów, budżet (widełki), wielkość zespołu.",
        "sales": "Podaj skalę: np. #klientów w portfelu, #leadów/mies., #ofert/tydz., #spotkań/mies., budżet (widełki).",
        "marketing": "Podaj skalę: np. budżet mediowy (widełki), #kampanii/mies., #leadów/mies., liczba kanałów.",
        "e-commerce": "Podaj skalę: np. #SKU, #zamówień/mies., obrót sklepu (widełki), liczba marketplace'ów.",
        "project-management": "Podaj skalę: np. budżet projektu, liczba osób w zespole, #projektów równolegle, czas trwania.",
        "engineering": "Podaj skalę: np. wielkość bazy danych, #użytkowników, RPS, liczba serwerów/serwisów.",
        "qa": "Podaj skalę: np. #przypadków testowych, #wydań/mies., liczba aplikacji/modułów, wielkość zespołu.",
        "customer-support": "Podaj skalę: np. #zgłoszeń/mies., wielkość zespołu, liczba kanałów obsługi.",
        "administrative": "Jak duża była to operacja? Np. ilu pracowników w biurze, ile faktur/dokumentów miesięcznie?",
    },
    "PROCESS": {
        "generic": "Jak wyglądał Twój proces pozyskania klienta? Wypisz 3–5 etapów (np. lead → kwalifikacja → spotkanie → oferta → zamknięcie).",
        "marketing": "Jak wyglądał lejek, za który odpowiadałeś? Wypisz 3–5 etapów (np. kampania → lead → kwalifikacja → przekazanie do sprzedaży).",
        "e-commerce": "Jak wyglądała ścieżka pozyskania klienta? Wypisz 3–5 etapów (np. ruch → karta produktu → koszyk → zamówienie → ponowny zakup).",
    },
    "RESULT": {
        "generic": "Jakie twarde wyniki udało Ci się dowieźć? Np. % realizacji planu, wzrost, oszczędności.",
        "sales": "Jaki był efekt? Podaj wyniki: np. % realizacji planu, przychód, win rate, liczba pozyskanych klientów.",
        "marketing": "Jaki był efekt? Podaj wyniki: np. ROAS/CPA, CTR, konwersja, liczba leadów.",
        "e-commerce": "Jaki był efekt? Podaj wyniki: np. konwersja, średnia wartość koszyka, przychód, ROAS.",
        "project-management": "Jaki był efekt? Np. dowiezienie w terminie/budżecie, skrócenie czasu realizacji, liczba wdrożeń.",
        "engineering": "Jaki był efekt? Podaj wyniki: np. uptime %, czas wdrożenia, wydajność systemu, mniej incydentów.",
        "qa": "Jaki był efekt? Np. mniej błędów na produkcji, krótszy czas regresji, pokrycie testami %.",
        "customer-support": "Jaki był efekt? Podaj wyniki: np. SLA, CSAT/NPS, czas obsługi (AHT), mniej eskalacji.",
        "administrative": "Jaki był pozytywny skutek Twojej pracy? Czy udało się skrócić czas procesów, zaoszczędzić czas zespołu albo wyeliminować błędy?",
    },
    "CONTEXT": {"generic": _CONTEXT_Q},
}

# Where a user can look the numbers up after skipping a question.
VERIFY_HINTS = {
    "sales": "CRM → Deals → filtr po dacie → win rate",
    "marketing": "Meta Ads Manager / GA4 → raporty → CTR/CPA/ROAS",
    "e-commerce": "panel sklepu / GA4 → konwersja i wartość koszyka",
    "project-management": "Jira → velocity/burndown; Confluence → status report",
    "engineering": "Grafana/Datadog → latency/uptime; GitHub → historia PR",
    "qa": "Jira → błędy per wydanie; raporty z testów regresji",
    "customer-support": "Zendesk/Freshdesk → raporty SLA/CSAT",
    "administrative": "arkusze/raporty miesięczne → liczba dokumentów i czas obsługi",
}
VERIFY_HINT_LINE = "Jeśli później znajdziesz dane, sprawdź: {hint}."
