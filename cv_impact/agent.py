import logging
import os
from typing import Callable, List, Optional, Sequence, Tuple

import openai
from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate
from langchain_openai import ChatOpenAI

from .guard import RewriteResult, validate_and_repair
from .prompts import REPAIR_PROMPT, REWRITE_PROMPT, SYSTEM_PROMPT
from .structure import RoleBlock

logger = logging.getLogger(__name__)

Generate = Callable[[List[BaseMessage]], str]
Answers = Sequence[Tuple[Optional[str], str]]

ANSWER_LABELS = {
    "ACTIONS": "Działania",
    "SCALE": "Skala",
    "PROCESS": "Proces",
    "RESULT": "Efekt",
    "CONTEXT": "Punkt odniesienia",
}


class GenerationError(RuntimeError):
    """The completion service could not be reached or returned an error."""


def _model_name() -> str:
    return os.getenv("OPENAI_MODEL_REWRITE") or os.getenv("OPENAI_MODEL", "gpt-4o-mini")


def llm(messages: List[BaseMessage]) -> str:
    # no transport retries: a failed call surfaces as GenerationError right away
    try:
        model = ChatOpenAI(
            model=_model_name(),
            temperature=float(os.getenv("CV_IMPACT_TEMPERATURE", "0.2")),
            timeout=float(os.getenv("CV_IMPACT_TIMEOUT", "30")),
            max_retries=0,
        )
        raw = model.invoke(messages)
    except (openai.OpenAIError, ValueError) as exc:
        logger.warning("completion call failed: %s", exc)
        raise GenerationError(str(exc)) from exc
    return raw.content if hasattr(raw, "content") else str(raw)


def facts_text(answers: Answers) -> str:
    lines = []
    for kind, text in answers:
        kind = getattr(kind, "value", kind)
        label = ANSWER_LABELS.get(kind, "Dodatkowo")
        lines.append(f"{label}: {text.strip()}")
    return "\n".join(lines) or "(brak)"


def allowed_facts(role: RoleBlock, answers: Answers) -> str:
    return "\n".join([role.title, role.raw_text] + [text for _, text in answers])


def build_rewrite_messages(role: RoleBlock, answers: Answers = ()) -> List[BaseMessage]:
    prompt = ChatPromptTemplate.from_messages([
        ("system", SYSTEM_PROMPT),
        ("human", REWRITE_PROMPT),
    ])
    return prompt.format_messages(
        role_title=role.title,
        before=role.raw_text or role.title,
        facts=facts_text(answers),
    )


def build_repair_messages(messages: List[BaseMessage], role: RoleBlock, problems: List[str], previous: str) -> List[BaseMessage]:
    prompt = ChatPromptTemplate.from_messages([("human", REPAIR_PROMPT)])
    return list(messages) + prompt.format_messages(
        role_title=role.title,
        problems="\n".join("- " + p for p in problems),
        previous=previous,
    )


def rewrite_role(role: RoleBlock, answers: Answers = (), generate: Optional[Generate] = None) -> RewriteResult:
    """Generate the BEFORE/AFTER block for one role and pass it through the output guard.

    Raises GenerationError only when the first call fails; a failed repair
    call falls back to the deterministic template instead.
    """
    generate = generate or llm
    messages = build_rewrite_messages(role, answers)
    first = generate(messages)

    def regenerate(problems, previous):
        try:
            return generate(build_repair_messages(messages, role, problems, previous))
        except GenerationError as exc:
            logger.warning("repair call for %r failed: %s", role.title, exc)
            return None

    result = validate_and_repair(
        first,
        role,
        allowed_facts(role, answers),
        answers=answers,
        regenerate=regenerate,
    )
    logger.info("rewrite for %r from %s after %d call(s)", role.title, result.source, result.attempts)
    return result
