import json
import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ValidationError

from .normalize import DATE_RANGE_RE, DATE_TOKEN_RE

TAG_PREFIX = "cv-impact"
TAG_RE = re.compile(r"\A\s*<!--\s*" + TAG_PREFIX + r"\s+(\{.*?\})\s*-->[ \t]*\n?", re.S)
ANY_TAG_RE = re.compile(r"<!--\s*" + TAG_PREFIX + r"\s+\{.*?\}\s*-->[ \t]*\n?", re.S)

BEFORE_RE = re.compile(r"===\s*BEFORE\s*\((.+?)\)\s*===", re.I)
AFTER_RE = re.compile(r"===\s*AFTER\s*\((.+?)\)\s*===", re.I)
LEGACY_START_RES = (
    re.compile(r"zacznijmy od\s*„(.+?)”", re.I),
    re.compile(r"bierzemy na warsztat kolejną rolę:\s*(.+?)\.?\s*$", re.I | re.M),
)

PASTE_MIN_LEN = 120


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatTurn] = []
    cv_text: Optional[str] = None
    selected_role_title: Optional[str] = None

    @classmethod
    def from_payload(cls, raw: Dict[str, Any]) -> "ChatRequest":
        """Build a request from a loosely-typed dict, dropping malformed turns."""
        raw = raw or {}
        messages = raw.get("messages", [])
        if not isinstance(messages, list):
            raise ValueError("messages must be a list")
        turns = []
        for m in messages:
            if not isinstance(m, dict):
                continue
            try:
                turns.append(ChatTurn(role=m.get("role"), content=m.get("content")))
            except ValidationError:
                continue
        cv_text = raw.get("cv_text") if isinstance(raw.get("cv_text"), str) else None
        selected = raw.get("selected_role_title")
        selected = selected.strip() if isinstance(selected, str) and selected.strip() else None
        return cls(messages=turns, cv_text=cv_text, selected_role_title=selected)


def encode_tags(text: str, **tags) -> str:
    payload = {k: v for k, v in tags.items() if v is not None}
    if not payload:
        return text
    # ">" is escaped so the payload can never close the comment early
    body = json.dumps(payload, ensure_ascii=False, sort_keys=True).replace(">", "\\u003e")
    return f"<!-- {TAG_PREFIX} {body} -->\n{text}"


def read_tags(text: str) -> Dict[str, Any]:
    m = TAG_RE.match(text or "")
    if not m:
        return {}
    try:
        data = json.loads(m.group(1))
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def strip_tags(text: str) -> str:
    return ANY_TAG_RE.sub("", text or "")


def started_title(turn: ChatTurn) -> Optional[str]:
    """Title of the role an assistant turn started, from its tag or its wording."""
    if turn.role != "assistant":
        return None
    start = read_tags(turn.content).get("start")
    if isinstance(start, str) and start:
        return start
    text = strip_tags(turn.content)
    for pattern in LEGACY_START_RES:
        m = pattern.search(text)
        if m:
            return m.group(1).strip()
    m = BEFORE_RE.search(text)
    return m.group(1).strip() if m else None


def rewritten_title(turn: ChatTurn) -> Optional[str]:
    if turn.role != "assistant":
        return None
    m = AFTER_RE.search(turn.content)
    return m.group(1).strip() if m else None


def last_turn(turns: List[ChatTurn], role: str) -> Optional[ChatTurn]:
    for turn in reversed(turns):
        if turn.role == role:
            return turn
    return None


def looks_like_experience_paste(text: str) -> bool:
    s = (text or "").replace("\r\n", "\n").strip()
    if len(s) < PASTE_MIN_LEN:
        return False
    has_dates = bool(DATE_RANGE_RE.search(s) or DATE_TOKEN_RE.search(s))
    has_pipe = "|" in s
    has_dash = " - " in s or "–" in s or "—" in s
    many_lines = len(s.split("\n")) >= 3
    return (has_dates and (has_pipe or has_dash) and many_lines) or (has_pipe and many_lines)


def pick_best_cv_chunk(turns: List[ChatTurn]) -> str:
    """Longest user turn that reads as a pasted experience section."""
    best = ""
    for turn in turns:
        if turn.role == "user" and looks_like_experience_paste(turn.content) and len(turn.content) > len(best):
            best = turn.content
    return best
