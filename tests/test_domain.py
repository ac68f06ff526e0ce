from cv_impact.domain import Domain, classify, is_acquisition_relevant


def test_title_vocabulary():
    assert classify("Junior Developer") == Domain.ENGINEERING
    assert classify("QA / Tester Manualny") == Domain.QA
    assert classify("Specjalista ds. Obsługi Klienta") == Domain.CUSTOMER_SUPPORT
    assert classify("Koordynator Projektu") == Domain.PROJECT_MANAGEMENT
    assert classify("Pracownik Administracyjny") == Domain.ADMINISTRATIVE


def test_title_wins_over_body():
    assert classify("Specjalista ds. Sprzedaży", "obsługa klientów i zgłoszeń") == Domain.SALES


def test_body_used_when_title_is_neutral():
    assert classify("Specjalista", "Prowadzenie kampanii Google Ads") == Domain.MARKETING
    assert classify("Stażysta", "") == Domain.GENERIC


def test_acquisition_relevance():
    text = "Pozyskiwanie klientów, leady outbound, negocjacje."
    assert is_acquisition_relevant(Domain.SALES, text)
    assert not is_acquisition_relevant(Domain.ENGINEERING, text)
    assert not is_acquisition_relevant(Domain.SALES, "Wsparcie handlowców w bieżącej sprzedaży.")
    assert not is_acquisition_relevant(Domain.SALES, text + " Bez bezpośredniej sprzedaży.")
