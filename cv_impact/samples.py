import random

# Example "Doświadczenie" sections for the demo button, one per domain family.
# Each one leaves some facts out on purpose so the interview has something to ask.
SAMPLE_CV_TEXTS = [
    # sales: numbers for scale, soft result only
    """Specjalista ds. Sprzedaży B2B - ABC Sp. z o.o., Warszawa | 03.2021 – obecnie
Pozyskiwanie klientów (outbound + inbound), obsługa leadów, prowadzenie rozmów handlowych, przygotowanie ofert i negocjacje. Praca w CRM (pipeline, follow-upy).
Około 40 pierwszych kontaktów outbound tygodniowo; regularne spotkania z klientami.

Asystent ds. Sprzedaży - Alfa Beta, Warszawa | 01.2020 – 02.2021
Wsparcie handlowców w bieżącej sprzedaży: przygotowanie ofert, aktualizacja CRM, kontakt z klientami w sprawie dokumentów.""",
    # marketing: hard metrics, no baseline
    """Specjalista ds. Marketingu Performance - REKLAMOPOL, zdalnie | 06.2022 – 12.2024
Prowadzenie kampanii Google Ads i Meta Ads: optymalizacja budżetów, kreacji i landingów, testy A/B, raportowanie wyników.
Miesięczne budżety na poziomie 60 tys. zł; równolegle kilkanaście kampanii.
Wyniki kampanii: ROAS 4.2, CPA 32 zł, CTR 2.3%.

Koordynator Social Media - Media Star | 01.2021 – 05.2022
Planowanie publikacji, przygotowanie treści i harmonogramów, współpraca z grafikiem, moderacja komentarzy.
Publikacje kilka razy w tygodniu oraz codzienna moderacja. Rozwój profilu i zwiększenie aktywności społeczności.""",
    # project management: actions present, weak scale and result
    """Koordynator Projektu - Papaka, Warszawa | 02.2020 – 08.2023
Koordynacja prac zespołu i dostawców, planowanie harmonogramu i priorytetów, statusy, dokumentacja i komunikacja z interesariuszami.
Równoległe prowadzenie kilku projektów; uzgadnianie zakresu i terminów z biznesem.
Realizacja projektów zgodnie z ustaleniami i poprawa płynności wdrożeń.

Asystent Project Managera - PMStart | 06.2019 – 01.2020
Organizacja spotkań, notatki i podsumowania, aktualizacja zadań, przygotowanie statusów.
Wsparcie PM w bieżącej egzekucji zadań.""",
    # engineering and QA: no hard metrics
    """Junior Developer - Qodek, zdalnie | 09.2021 – 11.2023
Implementacja zmian w aplikacji webowej, naprawa błędów i refaktoryzacja, praca z repozytorium (PR, code review), udział we wdrożeniach.
Regularna praca w sprintach, współpraca z zespołem przy przeglądach kodu.
Poprawa stabilności aplikacji i mniej incydentów.

QA / Tester Manualny - SWAPP | 01.2021 – 08.2021
Testy regresji, raportowanie błędów, przygotowanie scenariuszy testowych, współpraca z zespołem dev przy weryfikacji poprawek.
Poprawa jakości wydań i mniej błędów po release.""",
    # customer support and administration: few specifics
    """Specjalista ds. Obsługi Klienta - Baltona, Warszawa | 04.2022 – 10.2024
Obsługa zgłoszeń mail/telefon/chat, diagnoza problemów, eskalacje, aktualizacja danych w systemie.
Praca wielokanałowa na dużym wolumenie zgłoszeń.
Utrzymanie jakości obsługi i skrócenie czasu obsługi.

Pracownik Administracyjny - Lichwa Bank | 09.2020 – 03.2022
Wprowadzanie danych, przygotowanie dokumentów, obsługa korespondencji, wsparcie operacyjne (zamówienia, faktury, raporty).
Codzienna praca z dokumentami i rozliczeniami.""",
]


def random_sample_cv_text(rng=random) -> str:
    return rng.choice(SAMPLE_CV_TEXTS)
