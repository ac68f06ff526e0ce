import re
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .facts import FactSet
from .transcript import ChatTurn, read_tags

MAX_QUESTIONS = 6
MAX_ASKS_PER_KIND = 2


class FactKind(str, Enum):
    ACTIONS = "ACTIONS"
    SCALE = "SCALE"
    PROCESS = "PROCESS"
    RESULT = "RESULT"
    CONTEXT = "CONTEXT"


ORDER = (FactKind.ACTIONS, FactKind.SCALE, FactKind.PROCESS, FactKind.RESULT, FactKind.CONTEXT)
LATCHING = (FactKind.RESULT, FactKind.CONTEXT)

_BARE_DECLINES = {"nie", "no", "brak", "-", "skip", "pomiń", "pomin", "nope", "nie wiem", "n/a"}
_REFUSAL_RE = re.compile(
    r"nie wiem|brak danych|nie pamiętam|nie pamietam|nie mogę podać|nie moge podac|nie podam|\bn/a\b"
    r"|nie mam dostępu|nie mam dostepu|nie mam (?:tych )?danych|can'?t share|cannot share|i don'?t know"
    r"|\bdont know\b|no idea|don'?t remember",
    re.I,
)


def looks_like_decline(text: str) -> bool:
    """Short refusal or non-answer ("nie wiem", "-", "can't share")."""
    s = (text or "").strip()
    if not s or not re.search(r"[^\W_]", s):
        return True
    bare = re.sub(r"[.!?…\s]+$", "", s).lower()
    if bare in _BARE_DECLINES:
        return True
    return bool(_REFUSAL_RE.search(s)) and not re.search(r"\d", s)


class InterviewContext(BaseModel):
    """Per-role interview state, rebuilt from the transcript on every request.

    Threaded explicitly through `advance`: each turn returns a new value,
    nothing is mutated in place.
    """

    model_config = ConfigDict(frozen=True)

    asked: Dict[FactKind, int] = {}
    declined: Dict[FactKind, int] = {}
    total_asked: int = 0
    latched: FrozenSet[FactKind] = frozenset()
    answers: Tuple[Tuple[Optional[FactKind], str], ...] = ()
    last_asked: Optional[FactKind] = None
    last_declined: Optional[FactKind] = None

    def answer_texts(self) -> List[str]:
        return [text for _, text in self.answers]


def _bump(counts: Dict[FactKind, int], kind: FactKind) -> Dict[FactKind, int]:
    out = dict(counts)
    out[kind] = out.get(kind, 0) + 1
    return out


def _asked_kind(turn: ChatTurn) -> Optional[FactKind]:
    ask = read_tags(turn.content).get("ask")
    try:
        return FactKind(ask) if ask else None
    except ValueError:
        return None


def advance(ctx: InterviewContext, turn: ChatTurn) -> InterviewContext:
    if turn.role == "assistant":
        kind = _asked_kind(turn)
        if kind is None:
            return ctx.model_copy(update={"last_asked": None, "last_declined": None})
        return ctx.model_copy(
            update={
                "asked": _bump(ctx.asked, kind),
                "total_asked": ctx.total_asked + 1,
                "last_asked": kind,
                "last_declined": None,
            }
        )

    kind = ctx.last_asked
    if kind is not None and looks_like_decline(turn.content):
        return ctx.model_copy(
            update={"declined": _bump(ctx.declined, kind), "last_asked": None, "last_declined": kind}
        )
    text = turn.content.strip()
    if not text:
        return ctx.model_copy(update={"last_asked": None, "last_declined": None})
    latched = ctx.latched | {kind} if kind in LATCHING else ctx.latched
    return ctx.model_copy(
        update={
            "answers": ctx.answers + ((kind, text),),
            "latched": latched,
            "last_asked": None,
            "last_declined": None,
        }
    )


def replay(turns: Iterable[ChatTurn], ctx: Optional[InterviewContext] = None) -> InterviewContext:
    """Fold a role's conversation window into an InterviewContext."""
    ctx = ctx or InterviewContext()
    for turn in turns:
        ctx = advance(ctx, turn)
    return ctx


def is_closed(ctx: InterviewContext, kind: FactKind) -> bool:
    # one decline closes a kind, asking without an answer takes two
    return ctx.declined.get(kind, 0) >= 1 or ctx.asked.get(kind, 0) >= MAX_ASKS_PER_KIND


def apply_latches(facts: FactSet, ctx: InterviewContext) -> FactSet:
    update = {}
    if FactKind.RESULT in ctx.latched and not facts.has_result:
        update["has_result"] = True
        update["needs_context"] = not facts.ceiling
    if FactKind.CONTEXT in ctx.latched:
        update["has_context"] = True
    return facts.model_copy(update=update) if update else facts


def missing_kinds(facts: FactSet) -> List[FactKind]:
    missing = []
    if not facts.has_actions:
        missing.append(FactKind.ACTIONS)
    if not facts.has_scale:
        missing.append(FactKind.SCALE)
    if facts.needs_process and not facts.has_process:
        missing.append(FactKind.PROCESS)
    if not facts.has_result:
        missing.append(FactKind.RESULT)
    elif facts.needs_context and not facts.has_context:
        missing.append(FactKind.CONTEXT)
    return missing


def next_question(facts: FactSet, ctx: InterviewContext) -> Optional[FactKind]:
    """The next fact kind to ask about, or None when the role is ready to rewrite."""
    if ctx.total_asked >= MAX_QUESTIONS:
        return None
    missing = missing_kinds(apply_latches(facts, ctx))
    for kind in ORDER:
        if kind in missing and not is_closed(ctx, kind):
            return kind
    return None
