from streamlit.testing.v1 import AppTest

from cv_impact.samples import SAMPLE_CV_TEXTS


def test_app_starts_with_onboarding():
    at = AppTest.from_file("../app.py").run()
    assert not at.exception
    assert any("Wklej sekcję" in m.value for m in at.markdown)


def test_pasted_experience_gets_an_audit():
    at = AppTest.from_file("../app.py").run()
    at.chat_input[0].set_value(SAMPLE_CV_TEXTS[0]).run()
    assert not at.exception
    assert any("Wpisz numer" in t.value for t in at.text)
    assert len(at.session_state["messages"]) == 2


def test_sample_button_fills_the_sidebar():
    at = AppTest.from_file("../app.py").run()
    at.sidebar.button[0].click().run()
    assert at.sidebar.text_area[0].value in SAMPLE_CV_TEXTS
