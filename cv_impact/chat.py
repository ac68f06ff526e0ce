import logging
import os
import re
from typing import List, Optional

from pydantic import BaseModel

from .agent import Generate, GenerationError, rewrite_role
from .facts import FactSet, analyze
from .interview import FactKind, InterviewContext, missing_kinds, next_question, replay
from .prompts import (
    ALL_DONE_MESSAGE,
    AUDIT_INTRO,
    AUDIT_NOTHING_MISSING,
    AUDIT_PROMPT,
    CTA_LINE,
    DECLINE_ACK,
    GENERATION_ERROR_MESSAGE,
    MISSING_LABELS,
    NEXT_ROLE_INTRO,
    ONBOARDING_MESSAGE,
    QUESTION_BANK,
    READY_MESSAGE,
    START_INTRO,
    VERIFY_HINT_LINE,
    VERIFY_HINTS,
)
from .structure import RoleBlock, find_role, segment, slug
from .transcript import (
    ChatRequest,
    ChatTurn,
    encode_tags,
    last_turn,
    looks_like_experience_paste,
    pick_best_cv_chunk,
    read_tags,
    rewritten_title,
    started_title,
    strip_tags,
)

logger = logging.getLogger(__name__)

AUDIT_ROLES_DEFAULT = 5
AUDIT_ROLES_MIN = 3
AUDIT_ROLES_MAX = 8
YES_WORDS = {"tak", "t", "yes", "y", "ok", "okej", "jasne", "chcę", "chce"}
_CHOICE_RE = re.compile(r"^\s*(\d{1,2})\s*[.)]?\s*$")


def audit_limit() -> int:
    try:
        n = int(os.getenv("CV_IMPACT_AUDIT_ROLES", str(AUDIT_ROLES_DEFAULT)))
    except ValueError:
        n = AUDIT_ROLES_DEFAULT
    return max(AUDIT_ROLES_MIN, min(AUDIT_ROLES_MAX, n))


def is_yes(text: str) -> bool:
    s = re.sub(r"[.!?,\s]+$", "", (text or "").strip().lower())
    return s in YES_WORDS or "dalej" in s or "lecimy" in s


def cv_source(request: ChatRequest) -> str:
    if request.cv_text and request.cv_text.strip():
        return request.cv_text
    return pick_best_cv_chunk(request.messages)


def role_facts(role: RoleBlock, answers=()) -> FactSet:
    return analyze(role.body_text, answers, title=role.title)


def question_for(kind: FactKind, facts: FactSet) -> str:
    bank = QUESTION_BANK[kind.value]
    return bank.get(facts.domain.value) or bank["generic"]


def render_audit(roles: List[RoleBlock]) -> str:
    lines = [AUDIT_INTRO, ""]
    for i, role in enumerate(roles, 1):
        lines.append(f"{i}. {role.header_label()}")
        missing = missing_kinds(role_facts(role))
        labels = ", ".join(MISSING_LABELS[k.value] for k in missing) or AUDIT_NOTHING_MISSING
        lines.append(f"   braki: {labels}")
    lines.append("")
    lines.append(AUDIT_PROMPT.format(count=len(roles)))
    return encode_tags("\n".join(lines), audit=len(roles))


def _is_audit(turn: Optional[ChatTurn]) -> bool:
    if turn is None:
        return False
    return bool(read_tags(turn.content).get("audit")) or "wpisz numer" in strip_tags(turn.content).lower()


def _is_rewrite(turn: Optional[ChatTurn]) -> bool:
    return turn is not None and rewritten_title(turn) is not None and strip_tags(turn.content).rstrip().endswith(CTA_LINE)


class RoleStart(BaseModel):
    index: int
    title: str
    key: Optional[str] = None


def role_starts(turns: List[ChatTurn]) -> List[RoleStart]:
    """Assistant turns that started or rewrote a role, in order.

    The role key comes from the turn's tag; an untagged turn for the same
    title (a rewrite block, a legacy intro) inherits the key of the start
    before it.
    """
    starts = []
    for i, turn in enumerate(turns):
        title = started_title(turn)
        if not title:
            continue
        key = read_tags(turn.content).get("key")
        if not isinstance(key, str) or not key:
            key = starts[-1].key if starts and slug(starts[-1].title) == slug(title) else None
        starts.append(RoleStart(index=i, title=title, key=key))
    return starts


def active_role_start(turns: List[ChatTurn]) -> Optional[RoleStart]:
    starts = role_starts(turns)
    return starts[-1] if starts else None


def done_keys(turns: List[ChatTurn], since: int = 0) -> set:
    """Keys of the roles rewritten from turn `since` on; the bare title slug when the key is unknown."""
    starts = role_starts(turns)
    done = set()
    for i in range(max(since, 0), len(turns)):
        title = rewritten_title(turns[i])
        if not title:
            continue
        current = [s for s in starts if s.index <= i]
        if current and current[-1].key and slug(current[-1].title) == slug(title):
            done.add(current[-1].key)
        else:
            done.add(slug(title))
    return done


def is_done(role: RoleBlock, done: set) -> bool:
    return role.key in done or slug(role.title) in done


def resolve_role(roles: List[RoleBlock], start: RoleStart) -> RoleBlock:
    if start.key:
        for role in roles:
            if role.key == start.key:
                return role
    return find_role(roles, start.title)


def _rewrite_block(role: RoleBlock, answers, generate: Optional[Generate]) -> str:
    return rewrite_role(role, answers, generate).text


def start_role(role: RoleBlock, intro: str, generate: Optional[Generate]) -> str:
    facts = role_facts(role)
    kind = next_question(facts, InterviewContext())
    if kind is None:
        logger.debug("role %r has nothing missing, rewriting directly", role.title)
        text = "\n".join([intro, READY_MESSAGE, "", _rewrite_block(role, (), generate)])
        return encode_tags(text, start=role.title, key=role.key)
    return encode_tags(f"{intro}\n\n{question_for(kind, facts)}", start=role.title, key=role.key, ask=kind.value)


def interview_turn(role: RoleBlock, window: List[ChatTurn], generate: Optional[Generate]) -> str:
    ctx = replay(window)
    facts = role_facts(role, ctx.answer_texts())
    kind = next_question(facts, ctx)
    prefix = []
    if ctx.last_declined is not None:
        prefix.append(DECLINE_ACK)
        hint = VERIFY_HINTS.get(facts.domain.value)
        if hint and ctx.last_declined in (FactKind.SCALE, FactKind.RESULT):
            prefix.append(VERIFY_HINT_LINE.format(hint=hint))
    if kind is not None:
        logger.debug("role %r: asking %s (%d asked so far)", role.title, kind.value, ctx.total_asked)
        return encode_tags("\n".join(prefix + [question_for(kind, facts)]), ask=kind.value)
    logger.debug("role %r: ready to rewrite after %d question(s)", role.title, ctx.total_asked)
    return "\n".join(prefix + [READY_MESSAGE, "", _rewrite_block(role, ctx.answers, generate)])


def _route(request: ChatRequest, generate: Optional[Generate]) -> str:
    turns = request.messages
    roles = segment(cv_source(request))
    if not roles:
        logger.debug("no roles found, onboarding")
        return encode_tags(ONBOARDING_MESSAGE, onboarding=True)

    listed = roles[: audit_limit()]
    last_assistant = last_turn(turns, "assistant")
    last_user = last_turn(turns, "user")
    user_text = last_user.content if last_user else ""
    answered_last = bool(turns) and turns[-1].role == "user"

    if answered_last and _is_rewrite(last_assistant) and is_yes(user_text):
        done = done_keys(turns)
        for role in listed:
            if not is_done(role, done):
                logger.debug("continuing with next role %r", role.title)
                return start_role(role, NEXT_ROLE_INTRO.format(title=role.title), generate)
        return ALL_DONE_MESSAGE

    if answered_last and _is_audit(last_assistant):
        m = _CHOICE_RE.match(user_text)
        if m and 1 <= int(m.group(1)) <= len(listed):
            role = listed[int(m.group(1)) - 1]
            logger.debug("audit choice %s -> %r", m.group(1), role.title)
            return start_role(role, START_INTRO.format(title=role.title), generate)
        return render_audit(listed)

    if answered_last and looks_like_experience_paste(user_text):
        return render_audit(listed)

    active = active_role_start(turns)
    if request.selected_role_title:
        target = find_role(roles, request.selected_role_title)
        if active is None or slug(target.title) != slug(active.title):
            logger.debug("explicit role choice %r", target.title)
            return start_role(target, START_INTRO.format(title=target.title), generate)

    if active is None:
        done = done_keys(turns)
        undone = [r for r in roles if not is_done(r, done)]
        if len(roles) == 1 and undone:
            return start_role(undone[0], START_INTRO.format(title=undone[0].title), generate)
        return render_audit(listed)

    role = resolve_role(roles, active)
    done = done_keys(turns, since=active.index)
    if is_done(role, done) or active.key in done:
        return render_audit(listed)

    return interview_turn(role, turns[active.index:], generate)


def respond(request: ChatRequest, generate: Optional[Generate] = None) -> str:
    """One assistant reply for the whole transcript: onboarding, audit, question or rewrite."""
    try:
        return _route(request, generate)
    except GenerationError as exc:
        logger.warning("rewrite failed: %s", exc)
        return GENERATION_ERROR_MESSAGE
