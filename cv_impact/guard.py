import logging
import re
from typing import Callable, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel

from .normalize import normalize
from .prompts import (
    AFTER_MARKER,
    BEFORE_MARKER,
    CTA_LINE,
    MAX_BEFORE_LINES,
    MAX_BULLETS,
    MIN_BULLETS,
    VARIANT_A_LABEL,
    VARIANT_B_LABEL,
)
from .structure import RoleBlock

logger = logging.getLogger(__name__)

MAX_REPAIRS = 2
SHORTEN_AT = 180

BANNED_PHRASES = (
    "dzięki czemu",
    "dzieki czemu",
    "co przełożyło się na",
    "co przelozylo sie na",
    "co skutkowało",
    "co skutkowalo",
    "w wyniku czego",
    "co spowodowało",
    "co spowodowalo",
    "przyczyniając się do",
    "przyczyniajac sie do",
    "resulting in",
    "which led to",
    "leading to",
)
ARTIFACT_PHRASES = ("baseline/kontekst", "baseline/kontext", "realizacja:", "z ostatniej odpowiedzi usera")

_FENCE_RE = re.compile(r"^\s*(?:```|~~~)")
_META_RE = re.compile(
    r"^\s*(?:oto\b|poniżej\b|ponizej\b|jasne[,!.]|oczywiście[,!.]|oczywiscie[,!.]|mam nadzieję|mam nadzieje"
    r"|here is\b|here's\b|sure[,!.]|hope this|daj znać|daj znac|uwaga:|notatka:|note:)",
    re.I,
)
_DROP_LINE_RE = re.compile(r"^\s*(?:[-•*]\s*)?(?:RESULT|BASELINE\s*/\s*KONTE[KX]ST|BASELINE|KONTEKST)\b", re.I)
_REALIZACJA_RE = re.compile(r"^(\s*(?:[-•*–]\s*)?)realizacja:\s*", re.I)
_BULLET_RE = re.compile(r"^\s*(?:[-•*–—·▪►●]\s*|\d{1,2}[.)]\s+)(?=\S)")
_RULE_RE = re.compile(r"^\s*(?:[-*_~=]\s*){3,}$")
_BEFORE_HEADER_RE = re.compile(r"^\s*=+\s*BEFORE\b.*$", re.I)
_AFTER_HEADER_RE = re.compile(r"^\s*=+\s*AFTER\b.*$", re.I)
_VARIANT_RE = re.compile(r"^\s*(?:[-*]\s*)?\**\s*wersja\s+([ab])\b[^\n]*$", re.I)
_CTA_RE = re.compile(r"kolejn[aą]\s+rol[eę]\s*\?\s*$", re.I)
_NUMERAL_RE = re.compile(r"\d{1,3}(?:[  ]\d{3})+(?![\d.,])|\d+(?:[.,]\d+)*")
_THOUSANDS_RE = re.compile(r"\d{1,3}(?:[.,  ]\d{3})+")

VERBIFY = (
    ("pozyskiwanie", "Pozyskiwałem"),
    ("prowadzenie", "Prowadziłem"),
    ("koordynacja", "Koordynowałem"),
    ("koordynowanie", "Koordynowałem"),
    ("obsługa", "Obsługiwałem"),
    ("wsparcie", "Wspierałem"),
    ("realizacja", "Realizowałem"),
    ("realizowanie", "Realizowałem"),
    ("przygotowanie", "Przygotowałem"),
    ("przygotowywanie", "Przygotowywałem"),
    ("planowanie", "Planowałem"),
    ("organizacja", "Organizowałem"),
    ("implementacja", "Implementowałem"),
    ("naprawa", "Naprawiałem"),
    ("testy", "Prowadziłem testy"),
    ("wprowadzanie", "Wprowadzałem"),
    ("aktualizacja", "Aktualizowałem"),
    ("optymalizacja", "Optymalizowałem"),
    ("raportowanie", "Raportowałem"),
    ("współpraca", "Współpracowałem"),
    ("moderacja", "Moderowałem"),
    ("zarządzanie", "Zarządzałem"),
    ("tworzenie", "Tworzyłem"),
    ("analiza", "Analizowałem"),
    ("budowa", "Budowałem"),
    ("praca", "Pracowałem"),
    ("udział", "Brałem udział"),
)
ANSWER_PREFIXES = {
    "SCALE": "Skala",
    "PROCESS": "Proces",
    "RESULT": "Efekt",
    "CONTEXT": "Punkt odniesienia",
}


class RewriteResult(BaseModel):
    text: str
    source: Literal["generator", "fallback"]
    attempts: int = 0
    problems: List[str] = []


class ParsedRewrite(BaseModel):
    has_before: bool = False
    has_after: bool = False
    has_a: bool = False
    has_b: bool = False
    variant_a: List[str] = []
    variant_b: List[str] = []


def clean_output(text: str) -> str:
    """Drop code fences, filler and label lines; unify list markers to "- "."""
    lines = []
    for line in (text or "").replace("\r\n", "\n").split("\n"):
        if _FENCE_RE.match(line) or _RULE_RE.match(line) or _META_RE.match(line) or _DROP_LINE_RE.match(line):
            continue
        line = _REALIZACJA_RE.sub(r"\1", line)
        if _BULLET_RE.match(line):
            line = "- " + _BULLET_RE.sub("", line, count=1)
        lines.append(line.rstrip())
    out = "\n".join(lines).strip()
    return re.sub(r"\n{3,}", "\n\n", out)


def parse(text: str) -> ParsedRewrite:
    parsed = ParsedRewrite()
    section = None
    for line in (text or "").split("\n"):
        s = line.strip()
        if not s:
            continue
        if _BEFORE_HEADER_RE.match(s):
            parsed.has_before, section = True, "before"
            continue
        if _AFTER_HEADER_RE.match(s):
            parsed.has_after, section = True, "after"
            continue
        m = _VARIANT_RE.match(s)
        if m:
            section = m.group(1).lower()
            if section == "a":
                parsed.has_a = True
            else:
                parsed.has_b = True
            continue
        if _CTA_RE.search(s):
            section = None
            continue
        if section in ("a", "b"):
            bullet = re.sub(r"^-\s*", "", s).strip()
            if bullet:
                (parsed.variant_a if section == "a" else parsed.variant_b).append(bullet)
    return parsed


def _bullet_key(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip(" .;,").lower()


def dedupe_bullets(bullets: Sequence[str]) -> List[str]:
    out, seen = [], set()
    for b in bullets:
        key = _bullet_key(b)
        if key and key not in seen:
            seen.add(key)
            out.append(b)
    return out


def before_lines(role: RoleBlock) -> List[str]:
    lines = [l for l in normalize(role.raw_text or role.title).split("\n") if l.strip()]
    return lines[:MAX_BEFORE_LINES]


def render(role: RoleBlock, variant_a: Optional[Sequence[str]], variant_b: Optional[Sequence[str]], after: bool = True) -> str:
    out = [BEFORE_MARKER.format(title=role.title)]
    out.extend(before_lines(role))
    out.append("")
    if after:
        out.append(AFTER_MARKER.format(title=role.title))
    if variant_a is not None:
        out.append(VARIANT_A_LABEL)
        out.extend("- " + b for b in variant_a)
    if variant_b is not None:
        out.append(VARIANT_B_LABEL)
        out.extend("- " + b for b in variant_b)
    out.append(CTA_LINE)
    return "\n".join(out)


def repair(text: str, role: RoleBlock) -> str:
    """Rebuild generator output around a verbatim BEFORE block and a single call to action."""
    parsed = parse(clean_output(text))
    return render(
        role,
        dedupe_bullets(parsed.variant_a) if parsed.has_a else None,
        dedupe_bullets(parsed.variant_b) if parsed.has_b else None,
        after=parsed.has_after,
    )


def _numeral_forms(token: str) -> Tuple[str, ...]:
    plain = re.sub(r"[  ]", "", token)
    forms = (plain, plain.replace(",", "."), plain.replace(".", ","))
    if _THOUSANDS_RE.fullmatch(token):
        forms += (re.sub(r"[.,  ]", "", token),)
    return forms


def allowed_numerals(allowed_text: str) -> set:
    allowed = set()
    for m in _NUMERAL_RE.finditer(allowed_text or ""):
        allowed.update(_numeral_forms(m.group(0)))
    return allowed


def leaked_numerals(text: str, allowed_text: str) -> List[str]:
    allowed = allowed_numerals(allowed_text)
    leaked = []
    for m in _NUMERAL_RE.finditer(text or ""):
        token = m.group(0)
        if not any(form in allowed for form in _numeral_forms(token)) and token not in leaked:
            leaked.append(token)
    return leaked


def validate(text: str, role_title: str, allowed_text: str) -> List[str]:
    """Problems found in a rewrite; an empty list means the rewrite is valid."""
    problems = []
    if BEFORE_MARKER.format(title=role_title) not in text:
        problems.append("brak nagłówka BEFORE z tytułem roli")
    if AFTER_MARKER.format(title=role_title) not in text:
        problems.append("brak nagłówka AFTER z tytułem roli")
    parsed = parse(text)
    if not parsed.has_a:
        problems.append("brak sekcji Wersja A")
    if not parsed.has_b:
        problems.append("brak sekcji Wersja B")
    for name, bullets in (("A", parsed.variant_a), ("B", parsed.variant_b)):
        if not MIN_BULLETS <= len(bullets) <= MAX_BULLETS:
            problems.append(f"Wersja {name} ma {len(bullets)} bulletów (wymagane {MIN_BULLETS}–{MAX_BULLETS})")
    if parsed.variant_a and [_bullet_key(b) for b in parsed.variant_a] == [_bullet_key(b) for b in parsed.variant_b]:
        problems.append("Wersja A i Wersja B są identyczne")
    leaked = leaked_numerals(text, allowed_text)
    if leaked:
        problems.append("liczby spoza faktów: " + ", ".join(leaked))
    lowered = text.lower()
    for phrase in BANNED_PHRASES + ARTIFACT_PHRASES:
        if phrase in lowered:
            problems.append(f"niedozwolona fraza: {phrase}")
    if not text.rstrip().endswith(CTA_LINE):
        problems.append("brak końcowej linii z pytaniem o kolejną rolę")
    return problems


def _strip_marker(line: str) -> str:
    return _REALIZACJA_RE.sub("", _BULLET_RE.sub("", line, count=1)).strip()


def _shorten(text: str) -> str:
    s = re.sub(r"\s+", " ", text or "").strip().rstrip(".;,")
    if len(s) <= SHORTEN_AT:
        return s
    cut = s[:SHORTEN_AT].rsplit(" ", 1)[0]
    return cut.rstrip(" ,;:")


def _clauses(text: str) -> List[str]:
    out = []
    for line in (text or "").split("\n"):
        for part in re.split(r";|(?<=\.)\s+(?=[A-ZĄĆĘŁŃÓŚŹŻ])", _strip_marker(line)):
            part = _shorten(part)
            if len(part.split()) >= 2:
                out.append(part[0].upper() + part[1:])
    return out


def verbify(bullet: str) -> str:
    """Turn a leading action noun into a first-person past verb ("Prowadzenie" -> "Prowadziłem")."""
    m = re.match(r"([^\W\d_]+)(.*)", bullet, re.S)
    if not m:
        return bullet
    first = m.group(1).lower()
    for noun, verb in VERBIFY:
        if first == noun:
            return verb + m.group(2)
    return bullet


def _padding(role: RoleBlock) -> Tuple[List[str], List[str]]:
    # header fields restated as-is; B takes them in reverse so the variants differ
    a = [f"Stanowisko: {role.title}"]
    if role.company:
        a.append(f"Firma: {role.company}")
    if role.location:
        a.append(f"Lokalizacja: {role.location}")
    if role.date_range:
        a.append(f"Okres: {role.date_range.label}")
    return a, list(reversed(a))


def build_fallback(role: RoleBlock, answers: Sequence[Tuple[Optional[str], str]] = ()) -> str:
    """A rewrite assembled only from the role text and the user's answers."""
    variant_a = list(_clauses(role.body_text))
    for kind, text in answers:
        kind = getattr(kind, "value", kind)
        prefix = ANSWER_PREFIXES.get(kind)
        if prefix:
            variant_a.append(f"{prefix}: {_shorten(text)}")
        else:
            variant_a.extend(_clauses(text))
    variant_a = dedupe_bullets(variant_a)[:MAX_BULLETS]
    variant_b = [verbify(b) for b in reversed(variant_a)]

    pad_a, pad_b = _padding(role)
    while len(variant_a) < MIN_BULLETS and pad_a:
        variant_a.append(pad_a.pop(0))
    while len(variant_b) < MIN_BULLETS and pad_b:
        variant_b.append(pad_b.pop(0))
    return render(role, dedupe_bullets(variant_a), dedupe_bullets(variant_b))


def validate_and_repair(
    generated_text: str,
    role: RoleBlock,
    allowed_facts: str,
    answers: Sequence[Tuple[Optional[str], str]] = (),
    regenerate: Optional[Callable[[List[str], str], Optional[str]]] = None,
) -> RewriteResult:
    """Accept the generator's rewrite, ask it to fix itself, or fall back to a template.

    `regenerate(problems, previous)` returns a new raw answer, or None when
    the generator could not be reached; it is called at most MAX_REPAIRS times.
    """
    raw = generated_text
    attempts = 1
    while True:
        text = repair(raw, role)
        problems = validate(text, role.title, allowed_facts)
        if not problems:
            return RewriteResult(text=text, source="generator", attempts=attempts)
        logger.warning("rewrite for %r rejected (attempt %d): %s", role.title, attempts, "; ".join(problems))
        if regenerate is None or attempts > MAX_REPAIRS:
            break
        raw = regenerate(problems, raw)
        if raw is None:
            break
        attempts += 1
    logger.info("using deterministic fallback for %r", role.title)
    return RewriteResult(text=build_fallback(role, answers), source="fallback", attempts=attempts, problems=problems)
