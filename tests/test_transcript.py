import pytest

from cv_impact.samples import SAMPLE_CV_TEXTS
from cv_impact.transcript import (
    ChatRequest,
    ChatTurn,
    encode_tags,
    looks_like_experience_paste,
    pick_best_cv_chunk,
    read_tags,
    rewritten_title,
    started_title,
    strip_tags,
)


def test_tags_round_trip_and_strip():
    text = encode_tags("Jakie liczby?", start="Specjalista ds. Sprzedaży B2B", ask="SCALE")
    assert text.startswith("<!-- cv-impact ")
    assert read_tags(text) == {"start": "Specjalista ds. Sprzedaży B2B", "ask": "SCALE"}
    assert strip_tags(text) == "Jakie liczby?"


def test_tag_payload_cannot_close_the_comment():
    text = encode_tags("x", start="A --> B")
    assert "-->" not in text.split("\n")[0][:-3]
    assert read_tags(text)["start"] == "A --> B"


def test_no_tags_leaves_text_unchanged():
    assert encode_tags("Cześć") == "Cześć"
    assert read_tags("Cześć") == {}
    assert read_tags("<!-- cv-impact {nie json} -->\nx") == {}


def test_tags_only_read_from_the_start_of_a_turn():
    quoted = "Wklejam: " + encode_tags("x", ask="SCALE")
    assert read_tags(quoted) == {}


def test_from_payload_drops_malformed_turns():
    req = ChatRequest.from_payload(
        {
            "messages": [
                {"role": "user", "content": "a"},
                {"role": "system", "content": "b"},
                {"role": "assistant"},
                "c",
                {"role": "assistant", "content": "d"},
            ],
            "selected_role_title": "  ",
        }
    )
    assert [t.content for t in req.messages] == ["a", "d"]
    assert req.selected_role_title is None
    assert req.cv_text is None


def test_from_payload_rejects_non_list_messages():
    with pytest.raises(ValueError):
        ChatRequest.from_payload({"messages": "hej"})


def test_started_title_from_tag_and_legacy_wording():
    tagged = ChatTurn(role="assistant", content=encode_tags("Pytanie", start="Kierownik Zmiany"))
    assert started_title(tagged) == "Kierownik Zmiany"

    legacy = ChatTurn(role="assistant", content="Ok, w takim razie zacznijmy od „Junior Developer”. Pytanie?")
    assert started_title(legacy) == "Junior Developer"

    legacy = ChatTurn(role="assistant", content="Świetnie, bierzemy na warsztat kolejną rolę: Analityk Danych.\nPytanie?")
    assert started_title(legacy) == "Analityk Danych"

    assert started_title(ChatTurn(role="user", content=encode_tags("x", start="A"))) is None


def test_rewritten_title_from_after_marker():
    turn = ChatTurn(role="assistant", content="=== BEFORE (QA) ===\n...\n=== AFTER (QA) ===\n- x")
    assert rewritten_title(turn) == "QA"
    assert started_title(turn) == "QA"
    assert rewritten_title(ChatTurn(role="assistant", content="Ok.")) is None


def test_paste_detection():
    for text in SAMPLE_CV_TEXTS:
        assert looks_like_experience_paste(text)
    assert not looks_like_experience_paste("Około 40 kontaktów tygodniowo.")
    assert not looks_like_experience_paste("1")


def test_pick_best_cv_chunk_prefers_longest_paste():
    turns = [
        ChatTurn(role="user", content=SAMPLE_CV_TEXTS[1]),
        ChatTurn(role="assistant", content=SAMPLE_CV_TEXTS[0] * 2),
        ChatTurn(role="user", content="1"),
        ChatTurn(role="user", content=SAMPLE_CV_TEXTS[1] + "\n" + SAMPLE_CV_TEXTS[2]),
    ]
    assert pick_best_cv_chunk(turns) == turns[3].content
    assert pick_best_cv_chunk([]) == ""
