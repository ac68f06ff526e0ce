import logging

import streamlit as st

from cv_impact.chat import respond
from cv_impact.prompts import ONBOARDING_MESSAGE
from cv_impact.samples import random_sample_cv_text
from cv_impact.transcript import ChatRequest, ChatTurn, strip_tags

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="CV Impact", layout="wide")
st.title("CV Impact: sekcja Doświadczenie")

st.session_state.setdefault("messages", [])
st.session_state.setdefault("cv_input", "")


def _load_sample():
    st.session_state["cv_input"] = random_sample_cv_text()


def _reset():
    st.session_state["messages"] = []
    st.session_state["cv_input"] = ""


with st.sidebar:
    st.text_area(
        "Doświadczenie (opcjonalnie, przypięte do rozmowy)",
        height=320,
        key="cv_input",
    )
    st.button("Wstaw przykład", on_click=_load_sample)
    st.button("Nowa rozmowa", on_click=_reset)

if not st.session_state["messages"]:
    with st.chat_message("assistant"):
        st.markdown(ONBOARDING_MESSAGE)

for m in st.session_state["messages"]:
    with st.chat_message(m["role"]):
        st.text(strip_tags(m["content"]))

prompt = st.chat_input("Wklej Doświadczenie albo odpowiedz na pytanie")
if prompt:
    st.session_state["messages"].append({"role": "user", "content": prompt})
    with st.chat_message("user"):
        st.text(prompt)
    request = ChatRequest(
        messages=[ChatTurn(**m) for m in st.session_state["messages"]],
        cv_text=st.session_state.get("cv_input") or None,
    )
    with st.spinner("Analizuję..."):
        reply = respond(request)
    st.session_state["messages"].append({"role": "assistant", "content": reply})
    with st.chat_message("assistant"):
        st.text(strip_tags(reply))
